"""Input validation for CLI arguments."""
import re
import sys


def validate_secret_name(name: str) -> None:
    """
    Validate secret name before it is joined onto the store prefix.

    Allowed characters: [a-zA-Z0-9_-]

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not name:
        print("Error: Secret name cannot be empty", file=sys.stderr)
        print("\nSecret names must match: [a-zA-Z0-9_-]", file=sys.stderr)
        sys.exit(2)

    if not re.match(r'^[a-zA-Z0-9_-]+$', name):
        print(f"Error: Invalid secret name '{name}'", file=sys.stderr)
        print("\nAllowed characters: letters, numbers, underscores (_), hyphens (-)", file=sys.stderr)
        print("Not allowed: slashes (/), dots (.), spaces, special characters (@, $, !, etc.)", file=sys.stderr)
        print("\nExamples of valid names:", file=sys.stderr)
        print("  ✓ db-pass", file=sys.stderr)
        print("  ✓ API_KEY_2", file=sys.stderr)
        sys.exit(2)


def validate_secret_value(value: str) -> None:
    """
    Validate secret value is not empty.

    Secret Manager does not accept empty payloads.

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not value or value.strip() == "":
        print("Error: Secret value cannot be empty", file=sys.stderr)
        sys.exit(2)
