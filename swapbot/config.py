# swapbot/config.py
import os
import re
from dataclasses import dataclass
from dotenv import load_dotenv

from swapbot.exceptions import ConfigurationError

load_dotenv()

# Scroll mainnet: WETH -> wstETH
SCROLL_CHAIN_ID = 534352
SCROLL_WETH = "0x5300000000000000000000000000000000000004"
SCROLL_WSTETH = "0xf610A9dfB7C89644979b4A0f27063E9e7d7Cda32"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Settings:
    # --- credentials / endpoints (required) ---
    private_key: str
    zero_ex_api_key: str
    rpc_url: str

    # --- swap intent ---
    chain_id: int
    sell_token: str
    buy_token: str
    sell_amount: str                     # human amount, converted with sell token decimals
    affiliate_fee_bps: int
    surplus_collection: bool

    # --- aggregator ---
    zero_ex_base_url: str
    zero_ex_version: str
    http_timeout_sec: float

    # --- approval policy ---
    receipt_timeout_sec: int
    strict_approval: bool                # abort the run when the approval does not confirm
    read_only_mode: bool                 # simulate approvals but never broadcast

    log_level: str = "INFO"


def _log_level(s: str | None) -> str:
    level = (s or "INFO").strip().upper()
    if level not in LOG_LEVELS:
        allowed = ", ".join(LOG_LEVELS)
        raise ConfigurationError(f"Invalid LOG_LEVEL {s!r}: expected one of {allowed}")
    return level


def _bool(s: str | None) -> bool:
    return str(s or "").strip().lower() in ("1", "true", "yes", "y", "on")


def normalize_pk(raw: str | None) -> str:
    """
    Normalize a private key string:
    - strip whitespace and surrounding quotes
    - accept with or without 0x
    - validate 64 hex chars
    Return lowercase '0x' + 64 hex.
    """
    if not raw:
        raise ConfigurationError("PRIVATE_KEY missing")

    pk = raw.strip()
    if (pk.startswith('"') and pk.endswith('"')) or (pk.startswith("'") and pk.endswith("'")):
        pk = pk[1:-1].strip()

    body = pk[2:] if pk.lower().startswith("0x") else pk
    if not re.fullmatch(r"[0-9a-fA-F]{64}", body):
        raise ConfigurationError("Invalid PRIVATE_KEY: expected 64 hex chars (with or without 0x)")

    return "0x" + body.lower()


def get_settings(env: dict | None = None) -> Settings:
    """
    Build Settings from the environment (or an explicit mapping, used by tests).
    Raises ConfigurationError listing every missing required variable.
    """
    env = os.environ if env is None else env

    rpc_url = env.get("ALCHEMY_HTTP_TRANSPORT_URL") or env.get("RPC_URL")
    required = {
        "PRIVATE_KEY": env.get("PRIVATE_KEY"),
        "ZERO_EX_API_KEY": env.get("ZERO_EX_API_KEY"),
        "ALCHEMY_HTTP_TRANSPORT_URL": rpc_url,
    }
    missing = [k for k, v in required.items() if not v]
    if missing:
        raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

    try:
        return Settings(
            private_key=normalize_pk(env["PRIVATE_KEY"]),
            zero_ex_api_key=env["ZERO_EX_API_KEY"].strip(),
            rpc_url=rpc_url.strip(),

            chain_id=int(env.get("CHAIN_ID", SCROLL_CHAIN_ID)),
            sell_token=env.get("SELL_TOKEN", SCROLL_WETH),
            buy_token=env.get("BUY_TOKEN", SCROLL_WSTETH),
            sell_amount=env.get("SELL_AMOUNT", "0.1"),
            affiliate_fee_bps=int(env.get("AFFILIATE_FEE_BPS", "100")),
            surplus_collection=_bool(env.get("SURPLUS_COLLECTION", "true")),

            zero_ex_base_url=env.get("ZERO_EX_BASE_URL", "https://api.0x.org"),
            zero_ex_version=env.get("ZERO_EX_VERSION", "v2"),
            http_timeout_sec=float(env.get("HTTP_TIMEOUT_SEC", "15")),

            receipt_timeout_sec=int(env.get("RECEIPT_TIMEOUT_SEC", "120")),
            strict_approval=_bool(env.get("STRICT_APPROVAL")),
            read_only_mode=_bool(env.get("READ_ONLY_MODE")),

            log_level=_log_level(env.get("LOG_LEVEL")),
        )
    except ValueError as exc:
        raise ConfigurationError(f"Invalid numeric setting: {exc}") from exc
