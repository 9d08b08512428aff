"""Site Deployer package.

This module serves as the root of the Site Deployer Python package, which
publishes a generated, in-memory website (block-markup pages, referenced
images and a navigation menu) to a remote WordPress REST API, making it live,
and can reverse a deployment afterwards.

Package Structure
-----------------
- `pipeline/deployer/`:
    REST client with retry and throttling, media uploader, page manager,
    deployment store, deploy orchestrator and the command-line entrypoint.
- `config.py`: All configuration constants (paths, endpoints, defaults), as UPPER_SNAKE_CASE.
- `exceptions.py`: All project-specific exception classes.

Examples
--------
Basic import pattern:

>>> from site_deployer.pipeline.deployer import WordPressClient, create_deployer_from_client
>>> # See site_deployer.pipeline.deployer.cli for the entrypoint.
"""
