"""
Error classes for clearer exception sources.

Only InvalidAction and ShopError are meant to reach the player as feedback;
the rest are precondition failures the caller must avoid by sequencing calls
correctly (catalog loaded before battle start, profile loaded before settle).
"""
from __future__ import annotations

class DojoError(Exception):
    pass

class DataLoadError(DojoError):
    def __init__(self, path: str, detail: str):
        super().__init__(f"Failed to load {path}: {detail}")
        self.path = path
        self.detail = detail

class ValidationError(DojoError):
    pass

class CatalogLookupFailure(DojoError):
    def __init__(self, kind: str, key: str):
        super().__init__(f"Unknown {kind} '{key}'")
        self.kind = kind
        self.key = key

class MissingProfile(DojoError):
    def __init__(self, account: str):
        super().__init__(f"No profile stored for account '{account}'")
        self.account = account

class InvalidAction(DojoError):
    """Player action rejected; battle state is left untouched."""
    def __init__(self, action: str, reason: str):
        super().__init__(f"Cannot {action}: {reason}")
        self.action = action
        self.reason = reason

class ShopError(DojoError):
    pass

class InsufficientCoins(ShopError):
    def __init__(self, cost: int, balance: int):
        super().__init__(f"Upgrade costs {cost} coins, balance is {balance}")
        self.cost = cost
        self.balance = balance

class UpgradeMaxed(ShopError):
    def __init__(self, weapon_id: str, level: int):
        super().__init__(f"{weapon_id} is already at max level {level}")
        self.weapon_id = weapon_id
        self.level = level
