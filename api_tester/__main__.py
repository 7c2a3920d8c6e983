import sys

from api_tester.cli import main

sys.exit(main())
