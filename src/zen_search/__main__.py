import sys

from zen_search.cli import main


sys.exit(main())
