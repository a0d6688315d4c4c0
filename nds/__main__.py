import sys

from nds.main import main

sys.exit(main())
