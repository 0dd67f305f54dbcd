import sys

from yarp_lsp.server import main

sys.exit(main())
