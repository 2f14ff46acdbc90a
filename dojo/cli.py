"""Terminal front-end: sign in, fight, shop, stats and options.

This is the presentation/persistence caller around the battle core. It owns
pacing (via :class:`~dojo.battle.pacing.Pacer`), renders events with rich,
routes cues to the audio player and saves the profile after every
state-changing operation.
"""
from __future__ import annotations
import argparse
import os
import random
from datetime import datetime
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt, IntPrompt
from rich.table import Table
from rich.text import Text
from rich.box import ROUNDED

from dojo.audio.player import audio
from dojo.battle.models import ActionEvent, BattleEvent, ResolvedEvent
from dojo.battle.pacing import Pacer
from dojo.battle.progression import ACHIEVEMENTS, achievement_by_id
from dojo.battle.service import BattleService
from dojo.battle.session import BattleSession
from dojo.core.errors import InvalidAction, ShopError, ValidationError
from dojo.core.logging import logger, apply_settings_level
from dojo.data.roster import all_fighters, get_fighter
from dojo.data.weapons import WEAPONS, MAX_LEVEL, upgrade_level
from dojo.system.save import PlayerProfile, ProfileStore
from dojo.system.settings import Settings
from dojo.system.shop import purchase_upgrade, upgrade_cost

console = Console()

class DuelContext:
    def __init__(self, settings: Settings, store: Optional[ProfileStore] = None,
                 rng: Optional[random.Random] = None):
        self.settings = settings
        self.store = store or ProfileStore()
        self.rng = rng or self._create_rng()
        self.service = BattleService(self.rng)
        self.profile: Optional[PlayerProfile] = None

    def _create_rng(self) -> random.Random:
        """Create RNG with optional seed from environment."""
        seed = os.environ.get("DOJO_RNG_SEED")
        try:
            return random.Random(int(seed)) if seed else random.Random()
        except ValueError:
            logger.warn("BadRngSeedIgnored", seed=seed)
            return random.Random()

    def sign_in(self, account: str) -> PlayerProfile:
        self.profile = self.store.load_or_create(account)
        self.settings.update(last_account=self.profile.account)
        return self.profile

    def persist(self):
        if self.profile is not None:
            self.store.save(self.profile)

    def click(self) -> bool:
        """Menu selection blip."""
        if not self.settings.data.audio:
            return False
        return audio.play_cue("ui")

    @property
    def difficulty(self) -> int:
        return self.profile.difficulty if self.profile else self.settings.data.difficulty

# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def _hp_bar(cur: int, max_hp: int, width: int = 24) -> Text:
    cur = max(0, min(cur, max_hp))
    ratio = cur / max(1, max_hp)
    filled = int(round(ratio * width))
    color = "green" if ratio >= 0.5 else ("yellow" if ratio >= 0.3 else "red")
    bar = Text("█" * filled, style=color)
    bar.append("░" * (width - filled), style="grey37")
    bar.append(f" {cur}/{max_hp}")
    return bar

def _render_state(session: BattleSession):
    snap = session.snapshot()
    table = Table(box=ROUNDED, show_header=False, expand=False)
    for key, label in (("player", "You"), ("opponent", "Opponent")):
        s = snap[key]
        charge = "SPECIAL READY" if s["special_ready"] else f"charge {s['charge']}/{s['special_required']}"
        guard = " [cyan](guarding)[/cyan]" if s["defending"] else ""
        table.add_row(f"[bold]{label}[/bold]: {s['name']}", _hp_bar(s["hp"], s["max_hp"]), charge + guard)
    auto = " • [magenta]AUTO[/magenta]" if snap["auto"] else ""
    console.print(Panel(table, title=f"Difficulty {snap['difficulty']}{auto}", border_style="bright_white"))

def describe(event: BattleEvent, session: BattleSession) -> str:
    if isinstance(event, ResolvedEvent):
        return "[bold green]You won![/bold green]" if event.winner == "player" else "[bold red]You were defeated...[/bold red]"
    if not isinstance(event, ActionEvent):
        return ""
    who = session.state.side(event.side).fighter.name
    if event.action == "defend":
        return f"[italic]{who} defends and braces for impact.[/italic]"
    verb = "uses SPECIAL and deals" if event.action == "special" else "attacks and deals"
    guarded = " (guarded)" if event.defended else ""
    tag = " [dim](auto)[/dim]" if event.auto else ""
    return f"[bold]{who}[/bold] {verb} [bold]{event.damage}[/bold] damage{guarded}!{tag}"

# ---------------------------------------------------------------------------
# Screens
# ---------------------------------------------------------------------------

def choose_fighter(prompt: str = "Choose your fighter") -> str:
    fighters = all_fighters()
    table = Table(title=prompt, box=ROUNDED)
    for col in ("#", "Fighter", "HP", "ATK", "Special"):
        table.add_column(col)
    for i, f in enumerate(fighters, 1):
        table.add_row(str(i), f.name, str(f.max_hp), f"{f.attack_min}-{f.attack_max}",
                      f"x{f.special_multiplier} after {f.special_required}")
    console.print(table)
    idx = IntPrompt.ask("Fighter", default=1)
    idx = max(1, min(idx, len(fighters)))
    return fighters[idx - 1].id

def play_battle(ctx: DuelContext, character_id: str, *, opponent_id: Optional[str] = None,
                ask=None) -> Optional[str]:
    ask = ask or (lambda: Prompt.ask("[a]ttack  [s]pecial  [t]oggle auto  [q]uit", default="a"))
    def on_cue(name: str):
        if ctx.settings.data.audio:
            audio.play_cue(name)
    setup = ctx.service.start(character_id, opponent_id=opponent_id, difficulty=ctx.difficulty,
                              profile=ctx.profile, on_cue=on_cue)
    session = setup.session
    pacer = Pacer(ctx.settings.data.turn_delay_ms, ctx.settings.data.auto_delay_ms)
    console.print(f"Opponent: [bold]{setup.opponent.name}[/bold] has been chosen.")
    while not session.is_over():
        _render_state(session)
        if session.pending():
            for ev in pacer.drain(session):
                console.print(describe(ev, session))
            continue
        choice = ask().strip().lower()[:1]
        if choice == "q":
            console.print("[yellow]Battle abandoned.[/yellow]")
            return None
        try:
            if choice == "t":
                session.set_auto(not session.state.auto_mode)
                continue
            ev = session.player_action("special" if choice == "s" else "attack")
            console.print(describe(ev, session))
        except InvalidAction as e:
            console.print(f"[red]{e}[/red]")
    console.print(describe(session.events[-1], session))
    report = ctx.service.finish(session, ctx.profile)
    if report.profile is not None:
        ctx.persist()
        console.print(f"Coins +{report.coins} (balance {report.profile.coins})")
        for aid in report.unlocked:
            a = achievement_by_id(aid)
            console.print(Panel(f"[bold]{a.title if a else aid}[/bold]\n{a.description if a else ''}",
                                title="Achievement unlocked", border_style="yellow"))
    return report.result["outcome"]

def shop_screen(ctx: DuelContext):
    if ctx.profile is None:
        console.print("[yellow]Sign in to buy upgrades.[/yellow]")
        return
    character_id = choose_fighter("Upgrade which fighter?")
    while True:
        table = Table(title=f"{get_fighter(character_id).name} • {ctx.profile.coins} coins", box=ROUNDED)
        for col in ("#", "Weapon", "Level", "Bonus/level", "Next cost"):
            table.add_column(col)
        weapons = list(WEAPONS.values())
        for i, w in enumerate(weapons, 1):
            lvl = upgrade_level(ctx.profile.upgrades, character_id, w.id)
            cost = upgrade_cost(w, lvl)
            table.add_row(str(i), w.name, f"{lvl}/{MAX_LEVEL}", f"+{w.min_bonus}/+{w.max_bonus}",
                          "MAX" if cost is None else str(cost))
        console.print(table)
        pick = Prompt.ask("Buy # (blank to leave)", default="")
        if not pick.isdigit() or not (1 <= int(pick) <= len(weapons)):
            return
        try:
            bought = purchase_upgrade(ctx.profile, character_id, weapons[int(pick) - 1].id)
        except ShopError as e:
            console.print(f"[red]{e}[/red]")
            continue
        ctx.persist()
        console.print(f"[green]{bought.weapon.name} is now level {bought.level}.[/green]")
        for aid in bought.unlocked:
            a = achievement_by_id(aid)
            console.print(f"[yellow]Achievement unlocked: {a.title if a else aid}[/yellow]")

def stats_screen(ctx: DuelContext):
    if ctx.profile is None:
        console.print("[yellow]Guest battles are not tracked.[/yellow]")
        return
    p = ctx.profile
    s = p.stats
    table = Table(title=f"{p.account}", box=ROUNDED, show_header=False)
    rows = [
        ("Coins", p.coins), ("Lifetime coins", p.lifetime_coins), ("Battles", s.total_battles),
        ("Wins", s.wins), ("Losses", s.losses), ("Win streak", s.win_streak),
        ("Best streak", s.best_streak), ("Specials used", s.special_uses),
        ("Highest hit", s.highest_damage), ("Upgrades bought", s.purchases),
        ("Opponents defeated", len(s.defeated)),
    ]
    for label, value in rows:
        table.add_row(label, str(value))
    if s.wins_by_difficulty:
        table.add_row("Wins by difficulty", ", ".join(f"{d}: {n}" for d, n in sorted(s.wins_by_difficulty.items())))
    console.print(table)
    ach = Table(title="Achievements", box=ROUNDED)
    ach.add_column("Achievement")
    ach.add_column("Unlocked")
    for a in ACHIEVEMENTS:
        ts = p.achievements.get(a.id)
        if ts is None and a.hidden:
            ach.add_row("???", "")
            continue
        when = datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M") if ts is not None else "-"
        ach.add_row(f"{a.title}: {a.description}", when)
    console.print(ach)

def options_screen(ctx: DuelContext):
    ctx.settings.interactive_menu(ask=console.input)
    audio.set_enabled(ctx.settings.data.audio)
    if ctx.profile is not None and ctx.profile.difficulty != ctx.settings.data.difficulty:
        ctx.profile.difficulty = ctx.settings.data.difficulty
        ctx.persist()

# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(prog="dojo", description="Turn-based ninja duels in the terminal.")
    ap.add_argument("--account", help="sign in as this account (created if new)")
    ap.add_argument("--guest", action="store_true", help="play without a profile (nothing is tracked)")
    ap.add_argument("--difficulty", type=int, help="override the difficulty for this session")
    ap.add_argument("--seed", type=int, help="seed the battle RNG")
    ap.add_argument("--no-audio", action="store_true")
    return ap.parse_args(argv)

def run(argv: Optional[List[str]] = None):
    args = _parse_args(argv)
    settings = Settings.load()
    apply_settings_level(settings.data.log_level)
    if args.no_audio:
        settings.data.audio = False
    audio.set_enabled(settings.data.audio)
    ctx = DuelContext(settings, rng=random.Random(args.seed) if args.seed is not None else None)
    console.print(Panel(Text("DOJO DUEL", justify="center", style="bold bright_green"), border_style="bright_white"))

    if not args.guest:
        account = args.account or Prompt.ask("Account (blank for guest)", default=settings.data.last_account)
        if account:
            try:
                ctx.sign_in(account)
                console.print(f"Welcome, [bold]{ctx.profile.account}[/bold]. Coins: {ctx.profile.coins}")
            except ValidationError as e:
                console.print(f"[red]{e}[/red] Playing as guest.")
    if args.difficulty is not None:
        settings.data.difficulty = args.difficulty
        settings.data.normalize()
        if ctx.profile is not None:
            ctx.profile.difficulty = settings.data.difficulty

    while True:
        choice = Prompt.ask("\n[f]ight  [s]hop  s[t]ats  [o]ptions  [q]uit", default="f").strip().lower()[:1]
        ctx.click()
        if choice == "f":
            play_battle(ctx, choose_fighter())
        elif choice == "s":
            shop_screen(ctx)
        elif choice == "t":
            stats_screen(ctx)
        elif choice == "o":
            options_screen(ctx)
        elif choice == "q":
            console.print("Goodbye!")
            break
    audio.shutdown()

if __name__ == "__main__":
    run()
