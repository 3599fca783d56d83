import sys

from docs_repl.cli import main

sys.exit(main())
