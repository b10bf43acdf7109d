from pathlib import Path
import logging
import os
import sys

from dotenv import load_dotenv
from rich.logging import RichHandler

# Ensure the src directory is on sys.path when running as a script
_SRC_DIR = Path(__file__).resolve().parents[1]
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from idlemmo.bootstrap import create_game_session
from idlemmo.errors import ConfigurationError
from idlemmo.presentation.cli import main_menu


def _configure_logging() -> None:
    level = os.getenv("IDLEMMO_LOG_LEVEL", "INFO").strip().upper() or "INFO"
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(show_time=False, show_path=False, show_level=False)],
    )
    # request lines from httpx would leak signed API urls at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _print_help_surface() -> None:
    print("\nHelp:")
    print("- Account storage: set SUPABASE_URL and SUPABASE_KEY, or IDLEMMO_ACCOUNT_BACKEND=sql with IDLEMMO_DATABASE_URL.")
    print("- Set IDLEMMO_LOG_LEVEL=DEBUG to see every discovered API endpoint.")


def main():
    load_dotenv()
    _configure_logging()
    game = None
    try:
        game = create_game_session()
        main_menu(game)
    except KeyboardInterrupt:
        print("\nSession ended.")
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}")
        _print_help_surface()
    except Exception as exc:
        print("An unexpected error occurred. The session closed safely.")
        print(f"Reason: {exc}")
        _print_help_surface()
    finally:
        if game is not None:
            game.close()


if __name__ == "__main__":
    main()
