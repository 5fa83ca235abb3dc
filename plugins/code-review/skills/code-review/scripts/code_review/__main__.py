"""Allow `python -m code_review`."""
from .cli import main

main()
