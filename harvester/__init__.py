"""npm-harvester — fetch the most depended-upon npm packages onto disk."""

__version__ = "0.1.0"
