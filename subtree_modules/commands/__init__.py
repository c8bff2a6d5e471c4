"""Click commands for subtree-modules; each module exposes one handler."""
