import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from .border_shrinker import BorderShrinker, ShrinkSchedule
from .exceptions import MissingConfiguration, WorldMutationFailure
from .mutation_journal import CellPosition, CellSnapshot, MutationJournal
from .roster import RosterTracker
from .timeline import ScheduledTask, Timeline, TICK_RATE, ticks_from_minutes
from .world_surface import SPECTATOR, Location

logger = logging.getLogger(__name__)


class MatchState(Enum):
    LOBBY = 'LOBBY'
    RUNNING = 'RUNNING'
    ENDED = 'ENDED'


@dataclass
class PvpGate:
    enabled: bool = False
    grace_sequence_armed: bool = False


class MatchController:
    """
    Owns the single match of this process.

    Socket handlers and the tick loop call into it while holding ``lock``;
    everything scheduled on the Timeline for a match is tracked and cancelled
    when the match ends.
    """

    GRACE_MINUTES = 5
    PVP_WARNING_MINUTES = 1
    LOBBY_BORDER_SIZE = 500.0
    FLIGHT_STRIP_BELOW_Y = 210.0
    MIN_DEFAULT_END_SIZE = 10.0

    def __init__(
        self,
        world,
        config_store,
        timeline: Timeline,
        grace_minutes: Optional[int] = None,
        lobby_border_size: Optional[float] = None,
        flight_strip_below_y: Optional[float] = None,
    ):
        self.world = world
        self.config_store = config_store
        self.timeline = timeline
        self.lock = threading.RLock()

        self.grace_minutes = self.GRACE_MINUTES if grace_minutes is None else grace_minutes
        self.lobby_border_size = self.LOBBY_BORDER_SIZE if lobby_border_size is None else lobby_border_size
        self.flight_strip_below_y = self.FLIGHT_STRIP_BELOW_Y if flight_strip_below_y is None else flight_strip_below_y

        self.state = MatchState.LOBBY
        self.journal = MutationJournal()
        self.roster = RosterTracker()
        self.pvp = PvpGate()
        self.shrinker: Optional[BorderShrinker] = None
        self.started_at_tick: Optional[int] = None

        self._tasks: List[ScheduledTask] = []
        self._stripped_on_tick: Dict[str, int] = {}

    # ----------------------------- Queries -----------------------------

    def is_running(self) -> bool:
        return self.state == MatchState.RUNNING

    def is_pvp_enabled(self) -> bool:
        return self.pvp.enabled

    def alive_count(self) -> int:
        return self.roster.alive_count()

    def is_spectator(self, player_id: str) -> bool:
        return self.roster.is_spectator(player_id)

    def status(self) -> Dict:
        elapsed = None
        if self.is_running() and self.started_at_tick is not None:
            elapsed = (self.timeline.current_tick - self.started_at_tick) // TICK_RATE
        return {
            'state': self.state.value,
            'pvpEnabled': self.pvp.enabled,
            'alive': self.roster.alive_ids(),
            'spectators': self.roster.spectator_ids(),
            'journalSize': len(self.journal),
            'elapsedSeconds': elapsed,
            'borderSize': self.shrinker.current_size if self.shrinker else None,
            'scheduledTasks': [task.name for task in self._tasks if not task.cancelled],
        }

    # ----------------------------- Lifecycle -----------------------------

    def _schedule(self, delay_ticks: int, callback, name: str) -> ScheduledTask:
        task = self.timeline.schedule_once(delay_ticks, callback, name=name)
        self._tasks.append(task)
        return task

    def start_match(self) -> None:
        if self.is_running():
            return

        self.state = MatchState.RUNNING
        self.started_at_tick = self.timeline.current_tick
        self.journal.clear()
        self.roster.clear()
        self.pvp = PvpGate()
        self.shrinker = None
        self._stripped_on_tick = {}

        participants = self.world.online_players()
        self.roster.begin(participants)

        lobby = self._resolve_location('lobby')
        for player_id in participants:
            if lobby is not None:
                self.world.teleport(player_id, lobby)
            self.world.prepare_participant(player_id)

        self.set_pvp(False)
        self.pvp.grace_sequence_armed = True
        self.world.broadcast(f"PvP will be enabled in {self.grace_minutes} minutes.")

        warning_minutes = self.grace_minutes - self.PVP_WARNING_MINUTES
        if self.grace_minutes >= self.PVP_WARNING_MINUTES:
            self._schedule(ticks_from_minutes(warning_minutes), self._warn_pvp, 'pvp-warning')
        self._schedule(ticks_from_minutes(self.grace_minutes), self._enable_pvp, 'pvp-enable')

        border = self.config_store.get_border()
        shrink_start = border.shrink_start_minutes
        shrink_duration = border.shrink_duration_minutes
        self._schedule(
            ticks_from_minutes(shrink_start),
            lambda: self.start_border_shrink(shrink_duration),
            'border-shrink-start',
        )
        self._schedule(
            ticks_from_minutes(shrink_start + shrink_duration),
            self.teleport_alive_to_arena,
            'arena-teleport',
        )

        logger.info(f"Match started with {len(participants)} participants")
        self.world.broadcast(f"UHC round started! The border starts shrinking in {shrink_start} minutes.")

    def end_match(self, rollback: bool) -> None:
        for task in self._tasks:
            self.timeline.cancel(task)
        self._tasks = []

        was_running = self.is_running()
        if was_running:
            self.state = MatchState.ENDED

        entries = self.journal.drain_all()
        if rollback:
            self._replay(entries)
        elif entries:
            logger.info(f"Discarding {len(entries)} journal entries without rollback")

        self.roster.clear()
        self.journal.clear()
        self.pvp = PvpGate()
        self.shrinker = None
        self._stripped_on_tick = {}
        self.state = MatchState.LOBBY

        if was_running:
            self.started_at_tick = None
            self.world.broadcast('UHC round ended.')
            self._reset_lobby_border()
            logger.info(f"Match ended (rollback={rollback})")

    def _replay(self, entries) -> None:
        logger.info(f"Rollback: restoring {len(entries)} blocks...")
        failures = 0
        for position, snapshot in entries:
            failures += self._restore_cell(position, snapshot)
        if failures:
            logger.warning(f"Rollback finished with {failures} failed writes")
        else:
            logger.info("Rollback complete.")

    def _restore_cell(self, position: CellPosition, snapshot: CellSnapshot) -> int:
        failures = 0
        try:
            self.world.set_block_type(position, snapshot.material)
        except WorldMutationFailure as e:
            failures += 1
            logger.warning(f"Could not restore type at {position}: {str(e)}")
        try:
            self.world.set_block_data(position, snapshot.block_data)
        except WorldMutationFailure as e:
            failures += 1
            logger.warning(f"Could not restore block data at {position}: {str(e)}")
        if snapshot.contents is not None:
            try:
                self.world.set_container_contents(position, snapshot.contents)
            except WorldMutationFailure as e:
                failures += 1
                logger.warning(f"Could not restore container at {position}: {str(e)}")
        return failures

    def _reset_lobby_border(self) -> None:
        world_name = self.config_store.get_border().world
        if world_name is None:
            worlds = self.world.worlds()
            world_name = worlds[0] if worlds else None
        if world_name is None:
            return
        try:
            self.world.set_border_size(world_name, self.lobby_border_size)
        except WorldMutationFailure as e:
            logger.warning(f"Could not reset border of {world_name}: {str(e)}")

    # ----------------------------- Events -----------------------------

    def record_mutation(self, position: CellPosition, snapshot: CellSnapshot) -> bool:
        if not self.is_running():
            return False
        return self.journal.record_if_absent(position, lambda: snapshot)

    def report_elimination(self, player_id: str) -> None:
        if not self.is_running():
            return
        if not self.roster.eliminate(player_id):
            return

        # not match-owned: the last victim still turns spectator after end_match
        self.timeline.schedule_once(1, lambda: self.world.set_mode(player_id, SPECTATOR), name=f"spectate:{player_id}")

        alive = self.roster.alive_count()
        if alive == 1:
            winner_id = self.roster.sole_survivor()
            winner_name = self.world.player_name(winner_id)
            if winner_name is not None:
                self.world.send_title(winner_id, 'Victory!', 'You won the round!')
                self.world.broadcast(f"{winner_name} won the UHC round!")
            logger.info(f"Player {winner_id} won the match")
            self.end_match(True)
        elif alive == 0:
            self.world.broadcast('No players left. The round is over.')
            self.end_match(True)

    def handle_respawn(self, player_id: str) -> None:
        if not self.roster.is_spectator(player_id):
            return
        self._schedule(1, lambda: self.world.set_mode(player_id, SPECTATOR), f"respawn-spectate:{player_id}")

    def should_cancel_damage(self, victim_is_player: bool, attacker_is_player: bool) -> bool:
        if not self.is_running():
            return False
        if not victim_is_player or not attacker_is_player:
            return False
        return not self.pvp.enabled

    def handle_player_moved(self, player_id: str, location: Location, on_ground: bool) -> None:
        if not self.is_running():
            return
        if not on_ground or location.y >= self.flight_strip_below_y:
            return
        # at most one strip per player per tick
        now = self.timeline.current_tick
        if self._stripped_on_tick.get(player_id) == now:
            return
        self._stripped_on_tick[player_id] = now
        self.world.strip_flight_gear(player_id)

    # ----------------------------- PvP -----------------------------

    def set_pvp(self, enabled: bool) -> None:
        self.pvp.enabled = enabled
        for world_name in self.world.worlds():
            try:
                self.world.set_world_pvp(world_name, enabled)
            except WorldMutationFailure as e:
                logger.warning(f"Could not set pvp={enabled} on {world_name}: {str(e)}")

    def _warn_pvp(self) -> None:
        if not self.is_running() or not self.pvp.grace_sequence_armed:
            return
        self.world.broadcast(f"{self.PVP_WARNING_MINUTES} minute until PvP is enabled!")

    def _enable_pvp(self) -> None:
        if not self.is_running() or not self.pvp.grace_sequence_armed:
            return
        self.set_pvp(True)
        self.world.broadcast('PvP is now enabled!')
        self.pvp.grace_sequence_armed = False

    # ----------------------------- Border & arena -----------------------------

    def start_border_shrink(self, duration_minutes: int) -> None:
        if not self.is_running():
            return
        try:
            world_name, schedule, center = self._resolve_shrink(duration_minutes)
        except MissingConfiguration as e:
            logger.warning(f"Border shrink aborted: {str(e)}")
            self.world.broadcast(f"Border world not found: {e.setting}")
            return

        try:
            self.world.set_border_center(world_name, center[0], center[1])
            self.world.set_border_size(world_name, schedule.start_size)
        except WorldMutationFailure as e:
            logger.warning(f"Border shrink aborted: {str(e)}")
            self.world.broadcast(f"Border world not found: {world_name}")
            return

        self.shrinker = BorderShrinker(self.world, world_name, schedule, self.is_running)
        self.world.broadcast(
            f"Border shrinking: {schedule.start_size} -> {schedule.end_size} over {duration_minutes} minutes."
        )
        task = self.timeline.schedule_repeating(TICK_RATE, self.shrinker.tick, name='border-shrink')
        self._tasks.append(task)

    def _resolve_shrink(self, duration_minutes: int):
        border = self.config_store.get_border()
        world_name = border.world
        if world_name is None:
            worlds = self.world.worlds()
            world_name = worlds[0] if worlds else None
        current = self.world.get_border(world_name) if world_name is not None else None
        if current is None:
            raise MissingConfiguration(world_name or 'border world', 'world is not loaded')

        start_size = float(border.start_size) if border.start_size is not None else current.size
        if border.end_size is not None:
            end_size = float(border.end_size)
        else:
            end_size = max(self.MIN_DEFAULT_END_SIZE, start_size / 10.0)
        center_x = float(border.center_x) if border.center_x is not None else current.center_x
        center_z = float(border.center_z) if border.center_z is not None else current.center_z

        schedule = ShrinkSchedule(
            start_size=start_size,
            end_size=end_size,
            duration_seconds=int(duration_minutes * 60),
        )
        return world_name, schedule, (center_x, center_z)

    def teleport_alive_to_arena(self) -> None:
        if not self.is_running():
            return
        arena = self._resolve_location('arena')
        if arena is None:
            self.world.broadcast('Arena is not set! Use /uhc setarena as an operator.')
            return
        online = set(self.world.online_players())
        for player_id in self.roster.alive_ids():
            if player_id in online:
                self.world.teleport(player_id, arena)
        self.world.broadcast('All surviving players were teleported to the arena.')

    def _resolve_location(self, kind: str) -> Optional[Location]:
        try:
            return self.config_store.get_location(kind)
        except MissingConfiguration as e:
            logger.warning(str(e))
            return None
