"""
Entry point for running the seating engine as a module.

Usage:
    python -m seating generate input.json -o chart.json
    python -m seating validate input.json
    python -m seating view chart.json
    python -m seating edit chart.json --input input.json --unassign s4
    python -m seating sample -o input.json
"""

from seating.cli import main

if __name__ == "__main__":
    main()
