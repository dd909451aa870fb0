import os
import sys
import traceback
from pathlib import Path

from dotenv import load_dotenv

# Load .env before the settings file is read
env_path = Path(__file__).resolve().parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


if __name__ == "__main__":
    """
    Entry point for the MAi Drive terminal client.
    """
    root_dir = os.path.dirname(os.path.abspath(__file__))
    sys.path.insert(0, root_dir)

    from maidrive.cli import main

    settings_path = os.getenv("MAIDRIVE_SETTINGS")

    try:
        sys.exit(main(settings_path))
    except KeyboardInterrupt:
        print("\n\nBye.")
        sys.exit(0)
    except Exception as e:
        print(f"\nFatal error: {e}", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
        sys.exit(1)
