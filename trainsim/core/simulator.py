"""Main simulator class orchestrating the discrete event simulation."""

import time
from collections import deque
from typing import Deque, Dict, Optional

from .entities import CrewStatus, Dock, DockStatus, Train, TrainArena, TrainStatus
from .event_queue import Event, EventType, EventQueue
from .exceptions import SimulationError, SourceExhausted
from .metrics_collector import MetricsCollector
from .sim_config import SimulationConfig
from ..workload.value_source import ValueSource, build_value_source
from ..utils.logger import setup_logger


class Simulator:
    """Discrete event simulator of a single unloading dock.

    The simulator owns the whole simulation state: clock, event queue,
    train arena, dock, wait queue and metrics. Trains arrive in a
    self-perpetuating chain, wait in a FIFO queue for the dock and are
    unloaded there. Each train's crew hogs out after its shift whether or
    not the train is finished; a replacement crew has to travel to the
    train before it can move again. A hogged-out train at the head of the
    queue blocks everyone behind it.

    Events are never removed from the queue early. An event that no
    longer applies is recognised when it is popped:

    - any event for a train that already departed is dropped by the loop
    - a departure or hogout scheduled for a crew that has since been
      replaced is ignored by its handler
    """

    def __init__(self, config: Dict, value_source: Optional[ValueSource] = None):
        """Initialize simulator.

        Args:
            config: Simulation configuration dictionary
            value_source: Source of arrival, unload and crew values. Built
                from ``config['workload']`` when omitted.
        """
        self.config = config
        self.logger = setup_logger(self.__class__.__name__)
        self.sim_config = SimulationConfig(config, require_replay_paths=value_source is None)

        if value_source is None:
            value_source = build_value_source(config.get('workload', {}),
                                              seed=self.sim_config.random_seed)
        value_source.check_shift_length(self.sim_config.shift_length)
        self.value_source = value_source

        # Simulation state
        self.current_time = 0.0
        self.horizon = self.sim_config.horizon
        self.shift_length = self.sim_config.shift_length
        self.event_queue = EventQueue()
        self.trains = TrainArena()
        self.dock = Dock()
        self.wait_queue: Deque[int] = deque()
        self.metrics_collector = MetricsCollector(config)

        self._next_train_id = 0
        self._next_crew_id = 0
        self._initialized = False

        # Statistics
        self.events_processed = 0
        self.stale_events = 0
        self.termination_reason: Optional[str] = None

        self._handlers = {
            EventType.ARRIVAL: self._handle_arrival,
            EventType.DEPARTURE: self._handle_departure,
            EventType.HOGOUT: self._handle_hogout,
            EventType.CREW_REPLACEMENT: self._handle_crew_replacement,
        }

        self.logger.info("Simulator initialized")
        self.logger.info(f"Workload: {type(value_source).__name__}")
        self.logger.info(f"Horizon: {self.horizon}h, shift length: {self.shift_length}h")

    def run(self) -> Dict:
        """Run the simulation until no events remain.

        Returns:
            Dictionary containing simulation results and metrics
        """
        start_time = time.time()
        self.logger.info("Starting simulation...")

        self._initialize()
        max_events = self.sim_config.max_events

        try:
            while not self.event_queue.is_empty():
                if max_events is not None and self.events_processed >= max_events:
                    self.termination_reason = "max_events"
                    break
                self.step()
            else:
                self.termination_reason = "drained"
        except SourceExhausted as e:
            self.termination_reason = "source_exhausted"
            self.logger.warning(f"Time {self.current_time:.2f}: replay data exhausted ({e})")

        self.logger.debug(f"Time {self.current_time:.2f}: simulation ended")
        results = self._finalize()

        elapsed_time = time.time() - start_time
        self.logger.info(
            f"Simulation completed in {elapsed_time:.2f}s "
            f"({self.events_processed} events, reason: {self.termination_reason})"
        )

        return results

    def step(self) -> bool:
        """Pop and process the next event.

        Returns:
            True if the event was dispatched, False if it was dropped
        """
        if not self._initialized:
            self._initialize()

        event = self.event_queue.pop()
        train = self.trains.release(event.train_id)

        if train.train_status is TrainStatus.DEPARTED:
            self.stale_events += 1
            self.trains.dispose_if_drained(train.train_id)
            return False

        if event.time < self.current_time:
            raise SimulationError(
                f"Event {event.event_type.value} at {event.time} precedes clock {self.current_time}"
            )
        self.current_time = event.time
        self.dock.record_elapsed(self.current_time)

        self._process_event(event, train)

        self.dock.record_elapsed(self.current_time)
        self.events_processed += 1
        self.trains.dispose_if_drained(train.train_id)
        return True

    def schedule(self, event_type: EventType, train: Train, event_time: float) -> Event:
        """Schedule an event for a train's current crew.

        Args:
            event_type: Type of event
            train: Target train
            event_time: Absolute logical time

        Returns:
            The scheduled event
        """
        event = Event(time=event_time, event_type=event_type,
                      train_id=train.train_id, crew_id=train.crew_id)
        self.trains.acquire(train.train_id)
        self.event_queue.push(event)
        return event

    def _initialize(self) -> None:
        """Create the first train and schedule its arrival."""
        if self._initialized:
            return
        self._initialized = True
        self.logger.info("Initializing simulation...")
        self._schedule_next_arrival(first=True)

    def _schedule_next_arrival(self, first: bool = False) -> None:
        values = self.value_source.next_train_values()
        # The first train arrives at time zero; its drawn gap goes unused
        arrival_time = self.current_time if first else self.current_time + values.arrival_gap
        train = Train(
            train_id=self._new_train_id(),
            crew_id=self._new_crew_id(),
            arrival_time=arrival_time,
            unload_time=values.unload_time,
            time_until_hogout=values.remaining_shift,
        )
        self.trains.add(train)
        self.schedule(EventType.ARRIVAL, train, arrival_time)

    def _admits_arrival(self) -> bool:
        return self.value_source.admits_arrival(self.current_time, self.horizon)

    def _new_train_id(self) -> int:
        train_id = self._next_train_id
        self._next_train_id += 1
        return train_id

    def _new_crew_id(self) -> int:
        crew_id = self._next_crew_id
        self._next_crew_id += 1
        return crew_id

    def _process_event(self, event: Event, train: Train) -> None:
        """Process a single event.

        Args:
            event: Event to process
            train: Train the event refers to
        """
        handler = self._handlers.get(event.event_type)
        if handler is None:
            raise SimulationError(f"No handler for event type {event.event_type}")
        handler(event, train)

    def _handle_arrival(self, event: Event, train: Train) -> None:
        """Handle a train entering the system."""
        if train.train_status is not TrainStatus.ARRIVED:
            raise SimulationError(f"Arrival for {train} which already arrived")

        self.logger.debug(
            f"Time {self.current_time:.2f}: train {train.train_id} arrival for "
            f"{train.unload_time:.2f}h of unloading, crew {train.crew_id} with "
            f"{train.time_until_hogout:.2f}h before hogout (Q={len(self.wait_queue)})"
        )

        if not self.wait_queue and self.dock.status is DockStatus.IDLE:
            self._start_service(train)
        else:
            train.train_status = TrainStatus.WAITING
            self.wait_queue.append(train.train_id)

        self.schedule(EventType.HOGOUT, train, self.current_time + train.time_until_hogout)

        if self._admits_arrival():
            self._schedule_next_arrival()

    def _start_service(self, train: Train) -> None:
        """Move a train onto the dock and schedule its departure."""
        if self.dock.occupant is not None:
            raise SimulationError(
                f"Train {train.train_id} cannot enter dock occupied by train {self.dock.occupant}"
            )
        if train.crew_status is not CrewStatus.ON_SHIFT:
            raise SimulationError(f"Train {train.train_id} cannot enter dock without a crew")

        train.time_until_hogout -= self.current_time - train.crew_start_time
        self.logger.debug(
            f"Time {self.current_time:.2f}: train {train.train_id} entering dock for "
            f"{train.remaining_unload_time:.2f}h of unloading, crew {train.crew_id} with "
            f"{train.time_until_hogout:.2f}h before hogout"
        )

        train.queue_exit_time = self.current_time
        train.service_resume_time = self.current_time
        train.train_status = TrainStatus.IN_SERVICE
        self.dock.status = DockStatus.BUSY
        self.dock.occupant = train.train_id

        self.schedule(EventType.DEPARTURE, train,
                      self.current_time + train.remaining_unload_time)

    def _handle_departure(self, event: Event, train: Train) -> None:
        """Handle a train finishing unloading."""
        if train.crew_status is CrewStatus.HOGGED_OUT or event.crew_id != train.crew_id:
            # Crew hogged out after this departure was scheduled; the
            # replacement crew schedules a fresh one.
            self.stale_events += 1
            return

        if train.train_status is not TrainStatus.IN_SERVICE or self.dock.occupant != train.train_id:
            raise SimulationError(f"Departure for {train} which is not being unloaded")

        self.logger.debug(
            f"Time {self.current_time:.2f}: train {train.train_id} departing "
            f"(Q={len(self.wait_queue)})"
        )

        train.train_status = TrainStatus.DEPARTED
        train.dock_exit_time = self.current_time
        self.dock.status = DockStatus.IDLE
        self.dock.occupant = None

        self.metrics_collector.record_departure(train, queue_length=len(self.wait_queue))

        if not self.wait_queue:
            return

        head = self.trains.get(self.wait_queue[0])
        if head.crew_status is CrewStatus.ON_SHIFT:
            self.wait_queue.popleft()
            self._start_service(head)
        else:
            self.metrics_collector.record_head_of_line_block()
            self.logger.debug(
                f"Time {self.current_time:.2f}: train {head.train_id} crew {head.crew_id} "
                f"hasn't arrived yet, cannot enter dock (SERVER HOGGED)"
            )

    def _handle_hogout(self, event: Event, train: Train) -> None:
        """Handle the crew of a train reaching the end of its shift."""
        if event.crew_id != train.crew_id:
            self.stale_events += 1
            return

        if train.crew_status is not CrewStatus.ON_SHIFT:
            raise SimulationError(f"Hogout for {train} whose crew is already gone")
        if train.train_status not in (TrainStatus.WAITING, TrainStatus.IN_SERVICE):
            raise SimulationError(f"Hogout for {train} outside the queue or dock")

        # Drawn first so an exhausted replay source leaves the train untouched
        delay = self.value_source.next_crew_replacement_delay()

        train.crew_status = CrewStatus.HOGGED_OUT
        train.hogout_count += 1
        train.time_until_hogout = self.shift_length - delay

        if train.train_status is TrainStatus.WAITING:
            self.logger.debug(
                f"Time {self.current_time:.2f}: train {train.train_id} crew {train.crew_id} "
                f"hogged out in queue"
            )
        else:
            self.dock.status = DockStatus.IDLE_HOGGED
            train.remaining_unload_time -= self.current_time - train.service_resume_time
            self.logger.debug(
                f"Time {self.current_time:.2f}: train {train.train_id} crew {train.crew_id} "
                f"hogged out during service (SERVER HOGGED)"
            )

        train.crew_id = self._new_crew_id()
        self.schedule(EventType.CREW_REPLACEMENT, train, self.current_time + delay)

    def _handle_crew_replacement(self, event: Event, train: Train) -> None:
        """Handle a replacement crew reaching a hogged-out train."""
        if event.crew_id != train.crew_id or train.crew_status is not CrewStatus.HOGGED_OUT:
            raise SimulationError(f"Crew {event.crew_id} replacement does not match {train}")

        self.logger.debug(
            f"Time {self.current_time:.2f}: train {train.train_id} replacement crew "
            f"{train.crew_id} arrives (SERVER UNHOGGED)"
        )

        train.crew_status = CrewStatus.ON_SHIFT
        train.crew_start_time = self.current_time

        at_head = bool(self.wait_queue) and self.wait_queue[0] == train.train_id
        if (self.dock.status is DockStatus.IDLE
                and train.train_status is TrainStatus.WAITING and at_head):
            self.wait_queue.popleft()
            self._start_service(train)
        elif train.train_status is TrainStatus.IN_SERVICE:
            self.dock.status = DockStatus.BUSY
            train.service_resume_time = self.current_time
            self.schedule(EventType.DEPARTURE, train,
                          self.current_time + train.remaining_unload_time)

        # A train on the dock departs before the new shift can run out
        if train.train_status is TrainStatus.WAITING:
            self.schedule(EventType.HOGOUT, train, self.current_time + train.time_until_hogout)

    def _finalize(self) -> Dict:
        """Finalize simulation and compute results.

        Returns:
            Dictionary containing all results and metrics
        """
        self.logger.info("Finalizing simulation...")

        metrics = self.metrics_collector.compute_metrics(self.dock, self.current_time)

        results = {
            'termination_reason': self.termination_reason,
            'events_processed': self.events_processed,
            'stale_events': self.stale_events,
            'pending_events': self.event_queue.size(),
            'trains_created': self._next_train_id,
            'crews_assigned': self._next_crew_id,
            'trains_in_queue': len(self.wait_queue),
            'horizon': self.horizon,
            **metrics,
        }

        return results
