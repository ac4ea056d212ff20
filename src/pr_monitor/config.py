import os
import dotenv
import logging

dotenv.load_dotenv()

OVERRIDE_LOGGING = logging.getLevelName(os.environ.get("OVERRIDE_LOGGING", "INFO"))

TELEGRAM_TOKEN = os.environ.get("TELEGRAM_TOKEN")
TELEGRAM_CHAT_ID = os.environ.get("TELEGRAM_CHAT_ID")

CODEOWNERS_PATH = os.environ.get("CODEOWNERS_PATH", "CODEOWNERS")

BOT_COMMENT_DAYS = float(os.environ.get("BOT_COMMENT_DAYS", 7))

GITHUB_OUTPUT = os.environ.get("GITHUB_OUTPUT")

DRY_RUN = os.environ.get("DRY_RUN", "false") == "true"

PUSH_GATEWAY = os.environ.get("PUSH_GATEWAY")
