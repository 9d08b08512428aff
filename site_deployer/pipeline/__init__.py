"""Headless pipeline stages for the site deployer.

Each subpackage is self-contained and never performs terminal UI work; the
command-line layer lives in the subpackage's ``cli`` module.
"""
