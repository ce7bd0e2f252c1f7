"""
cli.py -- Command-line client for the flood risk assistant.

Runs the same conversation loop as the web surface, locally.
Enter a location to get a flood risk assessment, then use menu commands
(1-4, WHY, or word aliases).

Usage:  python cli.py
"""

from dotenv import load_dotenv

from geocoder import resolve_location
from logging_setup import setup_logging
from pipeline import assess, handle_menu, is_menu_command


def main():
    load_dotenv()
    setup_logging()
    session = {}  # {report, name}

    print("=== Flood Risk Assistant (CLI) ===")
    print("Type a location to get started, or a command (1-4, WHY).")
    print("Type 'quit' or 'exit' to leave.\n")

    while True:
        try:
            text = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            break

        if not text:
            print("Type a location (e.g. 'Rize') to get a flood risk assessment.\n")
            continue

        if text.lower() in ("quit", "exit"):
            print("Bye!")
            break

        if is_menu_command(text):
            reply = handle_menu(text, session.get("report"), session.get("name"))
            print(f"\n{reply}\n")
            continue

        location = resolve_location(text)
        report = assess(location["lat"], location["lon"], location["name"])
        session = {"report": report, "name": location["name"]}
        print(f"\n{report.text}\n")


if __name__ == "__main__":
    main()
