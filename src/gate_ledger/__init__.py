"""
Gate access ledger → Batch export → Local storage cleared

Logs entries and exits of fleet vehicles and collaborators at a facility gate,
keeps them in durable local storage until an operator finalizes the batch, and
exports the batch as a CSV report plus individual photo files.
"""

__version__ = "0.1.0"
