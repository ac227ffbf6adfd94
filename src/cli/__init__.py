"""CLI tools for the MusicScan CD scan pipeline.

- ``python -m src.cli.scan`` - identify a CD from photo files or URLs
  and print the verdict as a report or as JSON.
"""
