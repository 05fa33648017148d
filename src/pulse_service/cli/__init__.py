"""Console front-end: bootstrap, command registry, REPL and entrypoint."""
