"""GHLines — shows the lines behind GitHub/GitLab permalinks in chat."""

__version__ = "0.4.0"
