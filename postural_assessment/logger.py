# Structured Logging Module - colored console steps for the assessment pipeline
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, Optional

from postural_assessment import config


# ANSI Color Codes for Terminal
class Colors:
    BLUE = '\033[94m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    PURPLE = '\033[95m'
    CYAN = '\033[96m'
    WHITE = '\033[97m'
    DIM = '\033[2m'
    RESET = '\033[0m'
    BOLD = '\033[1m'


# Step category -> (emoji, default color)
STEP_STYLES = {
    "ENGINE": ("⚙️", Colors.CYAN),
    "RULES": ("📐", Colors.BLUE),
    "CACHE": ("🗂️", Colors.PURPLE),
    "DB": ("💾", Colors.WHITE),
    "API": ("🌐", Colors.CYAN),
    "SYSTEM": ("🔧", Colors.CYAN),
    "TIMING": ("⏱️", Colors.DIM),
    "ERROR": ("❌", Colors.RED),
    "SUCCESS": ("✅", Colors.GREEN),
    "WARNING": ("⚠️", Colors.YELLOW),
    "INFO": ("🔹", Colors.WHITE),
}

# "<STEP>:<first word of action>" -> what happens next
NEXT_STEPS = {
    "CACHE:HIT": "Returning stored analysis, no recomputation",
    "CACHE:MISS": "Requesting landmarks and running the rule catalog",
    "ENGINE:ANGLES": "Angle set ready, evaluating clinical rules",
    "RULES:CATALOG": "Findings ready, synthesizing recommendations",
    "ENGINE:RECOMMENDATIONS": "Treatment plan ready, storing analysis",
    "DB:RECORD": "Fetch via GET /analyses/{id}",
}

MAX_VALUE_LENGTH = 100


def get_timestamp() -> str:
    """Get formatted timestamp"""
    return datetime.now().strftime("%H:%M:%S.%f")[:-3]


def is_quiet() -> bool:
    return config.LOG_LEVEL.upper() == "QUIET"


def format_value(value: Any) -> str:
    """Render a detail value on one line"""
    if isinstance(value, float):
        text = f"{value:.3f}".rstrip("0").rstrip(".")
    elif isinstance(value, (list, tuple, set)):
        text = ", ".join(format_value(item) for item in value) or "none"
    elif isinstance(value, dict):
        text = ", ".join(f"{k}={format_value(v)}" for k, v in value.items()) or "none"
    else:
        text = str(value)

    if len(text) > MAX_VALUE_LENGTH:
        text = text[:MAX_VALUE_LENGTH - 3] + "..."
    return text


def _next_step(step: str, action: str) -> Optional[str]:
    words = action.split()
    if not words:
        return None
    return NEXT_STEPS.get(f"{step}:{words[0].upper()}")


def log_step(step: str, action: str, data: Optional[Dict[str, Any]] = None, color: Optional[str] = None):
    """
    Log a step with structured format

    Args:
        step: Step category (ENGINE, RULES, CACHE, DB, API, etc.)
        action: Description of the action
        data: Optional dictionary of details, one line each
        color: ANSI color code, defaults to the category's color
    """
    if is_quiet() and step != "ERROR":
        return

    prefix, default_color = STEP_STYLES.get(step, STEP_STYLES["INFO"])
    color = color or default_color
    stream = sys.stderr if step == "ERROR" else sys.stdout

    lines = [f"{color}{Colors.BOLD}[{get_timestamp()}] {prefix} [{step}]{Colors.RESET} {action}"]
    for key, value in (data or {}).items():
        lines.append(f"   {Colors.WHITE}├─ {key}: {format_value(value)}{Colors.RESET}")

    hint = _next_step(step, action)
    if hint:
        lines.append(f"   {Colors.YELLOW}└─ >>> Next: {hint}{Colors.RESET}")

    print("\n".join(lines) + "\n", file=stream)


def log_engine(action: str, data: Optional[Dict[str, Any]] = None):
    """Log analysis pipeline events"""
    log_step("ENGINE", action, data)


def log_rules(action: str, data: Optional[Dict[str, Any]] = None):
    """Log rule catalog events"""
    log_step("RULES", action, data)


def log_cache(action: str, data: Optional[Dict[str, Any]] = None):
    """Log result cache events"""
    log_step("CACHE", action, data)


def log_db(action: str, data: Optional[Dict[str, Any]] = None):
    log_step("DB", action, data)


def log_api(action: str, data: Optional[Dict[str, Any]] = None):
    log_step("API", action, data)


def log_info(action: str, data: Optional[Dict[str, Any]] = None):
    log_step("INFO", action, data)


def log_error(action: str, error: Exception, data: Optional[Dict[str, Any]] = None):
    """Log errors with type and message (always printed, to stderr)"""
    error_data = dict(data or {})
    error_data["Error"] = str(error)
    error_data["Type"] = type(error).__name__
    log_step("ERROR", action, error_data)


def log_success(action: str, data: Optional[Dict[str, Any]] = None):
    log_step("SUCCESS", action, data)


def log_warning(action: str, data: Optional[Dict[str, Any]] = None):
    log_step("WARNING", action, data)


@contextmanager
def log_timing(action: str, data: Optional[Dict[str, Any]] = None) -> Iterator[None]:
    """Log how long the wrapped block took, in milliseconds"""
    started = time.perf_counter()
    try:
        yield
    finally:
        details = dict(data or {})
        details["elapsed_ms"] = round((time.perf_counter() - started) * 1000, 2)
        log_step("TIMING", action, details)


def log_lifecycle(phase: str, details: str = ""):
    """
    Log major lifecycle events with clear visual separation

    Args:
        phase: Phase name (e.g., "STARTUP", "SHUTDOWN")
        details: Optional details
    """
    if is_quiet():
        return

    separator = "=" * 80
    banner = f"{Colors.BOLD}{Colors.CYAN}{separator}{Colors.RESET}"
    print(f"\n{banner}\n{Colors.BOLD}{Colors.CYAN}>>> {phase} {details}{Colors.RESET}\n{banner}\n")
