"""batchmv - Conflict-free batch renaming of files."""
