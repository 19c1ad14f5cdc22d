"""gitgrip subcommands."""
