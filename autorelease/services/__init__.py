"""Application services: the release workflow and its collaborators."""
