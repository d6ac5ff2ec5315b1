"""Package entry point for ``python -m slack_translator``.

WHY: Operators start the bot or run a one-off translation with
``python -m slack_translator run`` / ``python -m slack_translator translate``.

HOW: Delegates to the CLI's main().
"""

from slack_translator.cli import main

if __name__ == "__main__":
    main()
