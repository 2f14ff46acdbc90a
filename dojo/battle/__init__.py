"""
Battle engine package.
- stats.py (upgrade bonuses, difficulty scaling)
- mechanics.py (damage roll, defend halving, special charge)
- ai.py (opponent decision policy)
- session.py (turn state machine)
- pacing.py (cosmetic delays around deferred turns)
- progression.py (stats, coins, achievements after a battle)
- service.py (builds and settles sessions)
"""
from .session import BattleSession
from .service import BattleService
__all__ = ["BattleSession", "BattleService"]
