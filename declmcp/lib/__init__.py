"""declmcp utility library."""
