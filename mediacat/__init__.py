"""MediaCat — sorts downloaded media folders into a structured library.

Scans or watches an incoming folder, classifies each entry by the file
extensions found inside it, and moves it under the matching bucket of a
media root (movies, shows, audiobooks, books, ...).
"""

__version__ = "1.0.0"
__app_name__ = "MediaCat"
