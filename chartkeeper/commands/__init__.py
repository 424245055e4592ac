"""Click subcommands for chartkeeper."""
