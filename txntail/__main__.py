import sys

from txntail.tailer.main import main

sys.exit(main())
