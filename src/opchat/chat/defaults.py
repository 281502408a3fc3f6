"""Smart defaults for token creation.

Only a name is really needed to create a token: the symbol is derived from
the name, the supply from keywords in the name, and decimals are fixed at 18.
Everything here is a pure function of the name.
"""

import re

from opchat.chat.actions import ActionKind, BlockchainAction

DEFAULT_DECIMALS = "18"
FALLBACK_SYMBOL = "TKN"
MIN_SYMBOL_LENGTH = 3
MAX_SYMBOL_LENGTH = 4

GENERIC_WORDS = re.compile(r"\b(token|coin|currency|crypto|digital|blockchain)\b", re.IGNORECASE)

# Checked in order; the first category with a keyword in the name wins
SUPPLY_CATEGORIES: list[tuple[str, tuple[str, ...], int]] = [
    ("gaming", ("game", "gaming", "play", "quest", "rpg", "nft"), 1_000_000_000),
    ("meme", ("meme", "pepe", "doge", "shib", "moon", "rocket"), 1_000_000_000_000),
    ("governance", ("govern", "vote", "dao", "council", "proposal"), 10_000_000),
    ("utility", ("utility", "app", "platform", "service", "network"), 100_000_000),
    ("stable", ("stable", "usd", "dollar", "peg"), 1_000_000),
]
DEFAULT_SUPPLY = 1_000_000


def smart_total_supply(name: str) -> str:
    """Pick a total supply that suits the kind of token the name suggests.

    >>> smart_total_supply("Dragon Quest Token")
    '1000000000'
    """
    lowered = name.lower()
    for _, keywords, supply in SUPPLY_CATEGORIES:
        if any(keyword in lowered for keyword in keywords):
            return str(supply)
    return str(DEFAULT_SUPPLY)


def generate_token_symbol(name: str) -> str:
    """Derive a 3-4 letter ticker from a token name.

    >>> generate_token_symbol("Dragon Quest Token")
    'DRQU'
    >>> generate_token_symbol("Token")
    'TKN'
    """
    stripped = GENERIC_WORDS.sub(" ", name)
    words = [re.sub(r"[^A-Za-z0-9]", "", word) for word in stripped.split()]
    words = [word.upper() for word in words if word]

    if not words:
        return FALLBACK_SYMBOL

    if len(words) == 1:
        symbol = words[0][:MAX_SYMBOL_LENGTH]
    elif len(words) == 2:
        symbol = (words[0][:2] + words[1][:2])[:MAX_SYMBOL_LENGTH]
    else:
        symbol = "".join(word[0] for word in words)[:MAX_SYMBOL_LENGTH]

    return symbol.ljust(MIN_SYMBOL_LENGTH, "N")


def apply_token_defaults(action: BlockchainAction) -> BlockchainAction:
    """Fill decimals, supply and symbol on a token creation action.

    Values the user already gave are kept. Actions of other kinds are
    returned untouched.
    """
    if action.kind != ActionKind.CREATE_TOKEN:
        return action

    details = dict(action.details)
    name = str(details.get("name") or "").strip()

    if not details.get("decimals"):
        details["decimals"] = DEFAULT_DECIMALS

    if name:
        if not details.get("totalSupply"):
            details["totalSupply"] = smart_total_supply(name)
        if not details.get("symbol"):
            details["symbol"] = generate_token_symbol(name)

    action.details = details
    return action
