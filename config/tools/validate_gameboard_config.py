# config/tools/validate_gameboard_config.py

import sys           # for exit codes
from pprint import pprint  # for structured printing

# make src discoverable if running as a script
from pathlib import Path
# __file__ is .../config/tools/validate_gameboard_config.py
# parents[2] is the project root; append ROOT/src
PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.append(str(PROJECT_ROOT / "src"))

from env.loader import load_gameboard_config  # import our loader


def main() -> None:
    """Load and print the resolved gameboard profile, failing fast on errors."""
    path = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    try:
        profile = load_gameboard_config(path)  # resolve the active profile
    except (OSError, ValueError, KeyError) as e:
        print("Gameboard config validation FAILED:", file=sys.stderr)
        print(repr(e), file=sys.stderr)
        sys.exit(1)                          # non-zero exit: CI will mark as failed

    print("Gameboard config validation OK.")
    print("\nActive profile:", profile.name)
    print("\nModel settings:")
    pprint(profile.model_settings)
    print("\nAgent:")
    pprint(profile.agent)
    print("\nScan:")
    pprint(profile.scan)


if __name__ == "__main__":
    main()  # run main() only when script is executed directly
