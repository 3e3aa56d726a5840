import sys

from chrome_pdf.cli import main

sys.exit(main())
