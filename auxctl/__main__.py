"""
Entry point for the `auxctl` command-line interface.

auxctl manages the lifecycle of auxiliary services (nodes, miners,
indexers) described in a YAML service document, running each one as a
Docker container or a native process.
"""


def main():
    """Main entry point for the auxctl CLI."""
    from .cli import cli

    cli()


if __name__ == "__main__":
    main()
