"""
Launcher for Expense Assistant

Run from the repository root (or after `pip install -e .`):
    python app/main.py

Configuration comes from the environment or a .env file in the working
directory (BOT_TOKEN and ACCESS_CODE are required).
"""

from expense_assistant.bot.runner import main


if __name__ == "__main__":
    main()
