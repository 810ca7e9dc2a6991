"""
FeedScribe Configuration Module
Centralized configuration for the application.
"""

import os
from pathlib import Path

import yaml

# Debug Mode Configuration
DEBUG_MODE = os.environ.get('DEBUG', 'false').lower() == 'true'

# Application Paths
APP_NAME = "FeedScribe"
APPDATA_DIR = Path(os.environ.get('APPDATA', os.path.expanduser('~/.config'))) / APP_NAME
LOGS_DIR = APPDATA_DIR / "logs"
CONFIG_DIR = APPDATA_DIR / "config"
REPORTS_DIR = APPDATA_DIR / "reports"

# Ensure directories exist
for directory in [APPDATA_DIR, LOGS_DIR, CONFIG_DIR, REPORTS_DIR]:
    directory.mkdir(parents=True, exist_ok=True)

# Persisted selection marks (entry ids) survive between CLI invocations
SELECTION_FILE = CONFIG_DIR / "selection.json"

# AI Model Configuration
OLLAMA_API_BASE = os.environ.get('OLLAMA_HOST', "http://localhost:11434")
OLLAMA_MODEL_NAME = os.environ.get('FEEDSCRIBE_MODEL', "gemma3:1b")
OLLAMA_TIMEOUT_SECONDS = 300  # Per request; a batch itself has no timeout
SUMMARY_TEMPERATURE = 0.2

# Context Window Configuration
# Feed entries are short compared to legal filings; 4k leaves room for the
# system instruction and a few hundred words of output.
OLLAMA_CONTEXT_WINDOW = 4096  # Tokens

# Content Extraction
# Characters kept per entry after HTML stripping (0 disables truncation).
# 4 chars ~ 1 token, so 12000 chars fits the context window above.
EXTRACT_MAX_CHARS = 12000

# Progress Reporting
PROGRESS_THROTTLE_MS = 100  # "Summarizing ..." messages at most 10/second

# Parallel Request Configuration
# Controls how many summarization requests are in flight at once.
#
# User Override Options:
# - USER_PICKS_MAX_WORKER_COUNT: If True, use USER_DEFINED_MAX_WORKER_COUNT
#   instead of auto-detection. Default: False (auto-detect based on CPU)
# - USER_DEFINED_MAX_WORKER_COUNT: Manual worker count when override enabled.
#   Range: 1-8. Default: 2
#
# Auto-detection uses min(cpu_count, 4). A local Ollama server serializes
# generation per model anyway, so more workers mostly add queueing.

# User override settings (change these to customize)
USER_PICKS_MAX_WORKER_COUNT = False  # Set to True to use manual worker count
USER_DEFINED_MAX_WORKER_COUNT = 2    # Manual count when override enabled (1-8)

# Enforce bounds on user-defined count (1 minimum, 8 maximum)
_user_workers = max(1, min(8, USER_DEFINED_MAX_WORKER_COUNT))

if USER_PICKS_MAX_WORKER_COUNT:
    PARALLEL_MAX_WORKERS = _user_workers
else:
    PARALLEL_MAX_WORKERS = min(os.cpu_count() or 4, 4)

# Logging Configuration
# Defined before the prompt loader runs: it may import logging_config.
LOG_FILE = LOGS_DIR / "feedscribe.log"
LOG_FORMAT = "[%(levelname)s %(asctime)s] %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

# --- System Instruction Configuration ---
SYSTEM_PROMPTS_FILE = Path(__file__).parent.parent / "config" / "system_prompts.yaml"
USER_SYSTEM_PROMPTS_FILE = CONFIG_DIR / "system_prompts.yaml"  # User overrides
DEFAULT_SYSTEM_PROMPT_NAME = "summarize"
DEFAULT_SYSTEM_INSTRUCTION = (
    "You are a concise news assistant. Summarize the article the user sends "
    "in 3-5 sentences. Keep names, numbers and dates exact. Do not add "
    "opinions or information that is not in the article."
)
SYSTEM_PROMPTS = {}


def load_system_prompts() -> dict:
    """
    Loads named system instructions from config/system_prompts.yaml.

    Entries in the user's config directory override the bundled ones.
    """
    global SYSTEM_PROMPTS
    prompts = {}
    for prompts_file in (SYSTEM_PROMPTS_FILE, USER_SYSTEM_PROMPTS_FILE):
        try:
            with open(prompts_file, encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
            prompts.update(data.get('system_prompts', {}))
            if DEBUG_MODE:
                from feedscribe.logging_config import debug_log
                debug_log(f"[Config] Loaded system prompts from {prompts_file}")
        except FileNotFoundError:
            continue
        except Exception as e:
            from feedscribe.logging_config import debug_log
            debug_log(f"[Config] ERROR: Failed to load or parse {prompts_file}: {e}")
    SYSTEM_PROMPTS = prompts
    return SYSTEM_PROMPTS


def get_system_instruction(name: str = None) -> str:
    """
    Returns the system instruction text for a named prompt, with fallbacks.

    Args:
        name: Prompt name from system_prompts.yaml (e.g., 'summarize').
              Defaults to DEFAULT_SYSTEM_PROMPT_NAME.

    Returns:
        The instruction text. Falls back to the default prompt, then to the
        hard-coded DEFAULT_SYSTEM_INSTRUCTION.
    """
    if not SYSTEM_PROMPTS:
        load_system_prompts()

    name = name or DEFAULT_SYSTEM_PROMPT_NAME
    if name in SYSTEM_PROMPTS:
        return SYSTEM_PROMPTS[name].strip()

    if DEBUG_MODE:
        from feedscribe.logging_config import debug_log
        debug_log(f"[Config] WARNING: System prompt '{name}' not found. Using default.")

    if DEFAULT_SYSTEM_PROMPT_NAME in SYSTEM_PROMPTS:
        return SYSTEM_PROMPTS[DEFAULT_SYSTEM_PROMPT_NAME].strip()
    return DEFAULT_SYSTEM_INSTRUCTION


# Load prompts on module import
load_system_prompts()
# --- End System Instruction Configuration ---
