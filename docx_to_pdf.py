"""CLI shim -- delegates to batchconvert.cli.main().

Usage:
    python docx_to_pdf.py ./letters --output-dir ./pdf
    python docx_to_pdf.py report.docx --same-dir
"""

from batchconvert.cli import main

if __name__ == "__main__":
    main()
