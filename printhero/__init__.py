"""
PrintHero - hot folder printing for a single operator workstation.

Watches monitored folders for new documents, sends each one to a printer and
then moves, deletes or keeps the file according to the folder's policy.
"""

__version__ = "1.0.0"
