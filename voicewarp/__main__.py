# Description: Module entry point delegating to the command line interface.
import sys

from .cli import main

sys.exit(main())
