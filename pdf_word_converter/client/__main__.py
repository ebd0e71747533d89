import sys

from pdf_word_converter.client.cli import main

sys.exit(main())
