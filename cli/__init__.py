"""Command line interface for blocktrans."""
