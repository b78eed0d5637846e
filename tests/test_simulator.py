"""Tests for the main simulator."""

import unittest
from collections import deque

from trainsim.core.simulator import Simulator
from trainsim.core.event_queue import Event, EventType, EventQueue
from trainsim.core.entities import CrewStatus, Dock, DockStatus, Train, TrainArena, TrainStatus
from trainsim.core.exceptions import ConfigError, SimulationError
from trainsim.workload.value_source import GeneratedValueSource, ReplayValueSource


def replay_simulator(trains, delays=(), **simulation):
    """Build a simulator over a fixed replay of train triples and crew delays."""
    config = {'simulation': dict(simulation), 'crew': {'shift_length': 12.0}}
    return Simulator(config, value_source=ReplayValueSource(trains, delays))


class TestReplayScenarios(unittest.TestCase):
    """Hand-checked timelines driven by pre-made values."""

    def test_single_train_without_hogout(self):
        """One train unloads for 5h and leaves; its hogout is never honoured."""
        sim = replay_simulator([(0.0, 5.0, 100.0)])
        results = sim.run()

        self.assertEqual(results['termination_reason'], 'drained')
        self.assertEqual(results['trains_served'], 1)
        self.assertEqual(results['final_time'], 5.0)
        self.assertEqual(results['sum_time_in_system'], 5.0)
        self.assertEqual(results['max_queue_length'], 0)
        self.assertEqual(results['sum_queue_time'], 0.0)
        self.assertEqual(results['hogout_histogram'][:2], [1, 0])
        # The hogout at t=100 is dropped without moving the clock
        self.assertEqual(results['stale_events'], 1)

    def test_second_train_waits_for_busy_dock(self):
        sim = replay_simulator([(0.0, 5.0, 100.0), (1.0, 2.0, 100.0)])

        self.assertTrue(sim.step())  # A arrives at t=0
        self.assertTrue(sim.step())  # B arrives at t=1
        a, b = sim.trains.get(0), sim.trains.get(1)
        self.assertEqual(sim.current_time, 1.0)
        self.assertIs(a.train_status, TrainStatus.IN_SERVICE)
        self.assertIs(b.train_status, TrainStatus.WAITING)
        self.assertEqual(sim.wait_queue, deque([1]))

        results = sim.run()

        self.assertEqual(b.queue_exit_time, 5.0)
        self.assertEqual(b.dock_exit_time, 7.0)
        self.assertEqual(a.queue_exit_time, a.arrival_time)
        self.assertEqual(results['trains_served'], 2)
        self.assertEqual(results['max_queue_length'], 1)
        # A skipped the queue (0h), B waited from t=1 to t=5 (4h)
        self.assertEqual(results['sum_queue_time'], 4.0)
        self.assertEqual(results['sum_time_in_system'], 5.0 + 6.0)
        self.assertEqual(results['final_time'], 7.0)
        # B's crew had 100h at arrival and started work 4h later
        self.assertEqual(b.time_until_hogout, 96.0)

    def test_hogout_during_service(self):
        sim = replay_simulator([(0.0, 10.0, 3.0)], [2.0])

        sim.step()  # arrival, service starts
        train = sim.trains.get(0)
        self.assertEqual(train.crew_id, 0)

        sim.step()  # hogout at t=3
        self.assertEqual(sim.current_time, 3.0)
        self.assertIs(sim.dock.status, DockStatus.IDLE_HOGGED)
        self.assertIs(train.crew_status, CrewStatus.HOGGED_OUT)
        self.assertEqual(train.remaining_unload_time, 7.0)
        self.assertEqual(train.hogout_count, 1)
        self.assertEqual(train.time_until_hogout, 10.0)
        self.assertEqual(train.crew_id, 1)

        sim.step()  # replacement crew at t=5
        self.assertEqual(sim.current_time, 5.0)
        self.assertIs(sim.dock.status, DockStatus.BUSY)
        self.assertIs(train.crew_status, CrewStatus.ON_SHIFT)
        self.assertEqual(sim.event_queue.peek().time, 10.0)

        sim.step()  # departure scheduled by the first crew, t=10
        self.assertIs(train.train_status, TrainStatus.IN_SERVICE)
        self.assertEqual(sim.stale_events, 1)

        results = sim.run()
        self.assertEqual(train.dock_exit_time, 12.0)
        self.assertEqual(results['final_time'], 12.0)
        self.assertEqual(results['trains_served'], 1)
        self.assertEqual(results['hogout_histogram'][:3], [1, 1, 0])
        self.assertEqual(results['dock_busy_time'], 10.0)
        self.assertEqual(results['dock_idle_hogged_time'], 2.0)
        self.assertEqual(results['dock_idle_time'], 0.0)

    def test_departure_while_hogged_out_changes_nothing(self):
        sim = replay_simulator([(0.0, 4.0, 3.0)], [2.0])
        sim.step()  # arrival
        sim.step()  # hogout at t=3, 1h of unloading left

        train = sim.trains.get(0)
        self.assertEqual(sim.event_queue.peek().event_type, EventType.DEPARTURE)
        dock_before = (sim.dock.status, sim.dock.occupant)
        queue_before = list(sim.wait_queue)
        served_before = sim.metrics_collector.trains_served

        sim.step()  # stale departure at t=4

        self.assertEqual((sim.dock.status, sim.dock.occupant), dock_before)
        self.assertEqual(list(sim.wait_queue), queue_before)
        self.assertEqual(sim.metrics_collector.trains_served, served_before)
        self.assertIs(train.train_status, TrainStatus.IN_SERVICE)

        results = sim.run()
        self.assertEqual(train.dock_exit_time, 6.0)
        self.assertEqual(results['trains_served'], 1)

    def test_hogged_out_head_blocks_queue(self):
        trains = [
            (0.0, 5.0, 100.0),  # A: t=0, in service until t=5
            (1.0, 2.0, 2.0),    # B: t=1, hogs out in queue at t=3
            (1.0, 1.0, 100.0),  # C: t=2, queued behind B
        ]
        sim = replay_simulator(trains, [4.0])
        for _ in range(4):
            sim.step()  # arrivals A, B, C and B's hogout

        b, c = sim.trains.get(1), sim.trains.get(2)
        self.assertIs(b.crew_status, CrewStatus.HOGGED_OUT)

        sim.step()  # A departs at t=5
        self.assertEqual(sim.current_time, 5.0)
        self.assertIs(sim.dock.status, DockStatus.IDLE)
        self.assertIsNone(sim.dock.occupant)
        self.assertEqual(list(sim.wait_queue), [1, 2])
        self.assertIs(c.train_status, TrainStatus.WAITING)

        results = sim.run()

        self.assertEqual(b.queue_exit_time, 7.0)
        self.assertEqual(b.dock_exit_time, 9.0)
        self.assertEqual(c.queue_exit_time, 9.0)
        self.assertEqual(c.dock_exit_time, 10.0)
        self.assertEqual(results['head_of_line_blocks'], 1)
        self.assertEqual(results['max_queue_length'], 2)
        self.assertEqual(results['dock_idle_time'], 2.0)
        self.assertEqual(results['dock_busy_time'], 8.0)
        self.assertEqual(results['hogout_histogram'][:3], [3, 1, 0])

    def test_replacement_behind_head_stays_queued(self):
        trains = [
            (0.0, 20.0, 100.0),  # A: occupies the dock
            (1.0, 1.0, 2.0),     # B: hogout at t=3
            (1.0, 1.0, 1.0),     # C: hogout at t=3 as well
        ]
        sim = replay_simulator(trains, [2.0, 3.0])
        for _ in range(3):
            sim.step()

        b, c = sim.trains.get(1), sim.trains.get(2)
        sim.step()
        sim.step()
        # Equal times pop in scheduling order: B's hogout was queued first
        self.assertEqual(b.crew_id, 3)
        self.assertEqual(c.crew_id, 4)

        sim.step()  # B's crew at t=5, dock still busy
        sim.step()  # C's crew at t=6
        self.assertEqual(sim.current_time, 6.0)
        self.assertIs(c.crew_status, CrewStatus.ON_SHIFT)
        self.assertIs(c.train_status, TrainStatus.WAITING)
        self.assertEqual(list(sim.wait_queue), [1, 2])
        self.assertEqual(c.time_until_hogout, 9.0)
        # Only C's next hogout refers to it now
        self.assertEqual(sim.trains.pending_events(2), 1)

    def test_replay_crew_exhaustion_ends_run(self):
        sim = replay_simulator([(0.0, 10.0, 3.0)], [])
        results = sim.run()

        train = sim.trains.get(0)
        self.assertEqual(results['termination_reason'], 'source_exhausted')
        self.assertEqual(results['final_time'], 3.0)
        self.assertEqual(results['trains_served'], 0)
        self.assertIs(train.crew_status, CrewStatus.ON_SHIFT)
        self.assertEqual(train.hogout_count, 0)

    def test_first_train_arrives_at_time_zero(self):
        sim = replay_simulator([(2.5, 1.0, 10.0), (1.0, 1.0, 10.0)])
        results = sim.run()

        # The leading gap of 2.5 is not applied; train 1 arrives at t=1
        self.assertEqual(results['final_time'], 2.0)
        self.assertEqual(results['dock_idle_time'], 0.0)
        self.assertEqual(results['sum_queue_time'], 0.0)

    def test_replay_runs_past_horizon(self):
        trains = [(0.0, 1.0, 10.0), (5.0, 1.0, 10.0), (5.0, 1.0, 10.0)]
        sim = replay_simulator(trains, horizon=4.0)
        results = sim.run()

        self.assertEqual(results['termination_reason'], 'drained')
        self.assertEqual(results['trains_created'], 3)
        self.assertEqual(results['trains_served'], 3)
        self.assertEqual(results['final_time'], 11.0)

    def test_remaining_shift_longer_than_shift_length(self):
        sim = Simulator({}, value_source=ReplayValueSource([(0.0, 5.0, 100.0)], []))
        results = sim.run()

        self.assertEqual(sim.shift_length, 12.0)
        self.assertEqual(results['trains_served'], 1)
        self.assertEqual(results['final_time'], 5.0)

    def test_max_events_stops_loop(self):
        sim = replay_simulator([(0.0, 5.0, 100.0), (1.0, 2.0, 100.0)], max_events=2)
        results = sim.run()

        self.assertEqual(results['termination_reason'], 'max_events')
        self.assertEqual(results['events_processed'], 2)
        self.assertEqual(results['trains_in_queue'], 1)

    def test_departed_trains_are_released(self):
        sim = replay_simulator([(0.0, 5.0, 100.0), (1.0, 2.0, 100.0)])
        results = sim.run()

        self.assertEqual(len(sim.trains), 0)
        self.assertEqual(sim.trains.released, results['trains_created'])
        self.assertEqual(results['pending_events'], 0)


class TestInvariantViolations(unittest.TestCase):
    """Scheduling bugs surface as SimulationError."""

    def setUp(self):
        self.sim = replay_simulator([(0.0, 5.0, 100.0), (1.0, 2.0, 100.0)])
        self.sim.step()
        self.sim.step()

    def test_departure_of_waiting_train(self):
        waiting = self.sim.trains.get(1)
        event = Event(time=2.0, event_type=EventType.DEPARTURE,
                      train_id=1, crew_id=waiting.crew_id)
        with self.assertRaises(SimulationError):
            self.sim._process_event(event, waiting)

    def test_service_on_occupied_dock(self):
        with self.assertRaises(SimulationError):
            self.sim._start_service(self.sim.trains.get(1))

    def test_replacement_for_crew_on_shift(self):
        train = self.sim.trains.get(1)
        event = Event(time=2.0, event_type=EventType.CREW_REPLACEMENT,
                      train_id=1, crew_id=train.crew_id)
        with self.assertRaises(SimulationError):
            self.sim._process_event(event, train)

    def test_clock_never_moves_backwards(self):
        train = self.sim.trains.get(1)
        self.sim.schedule(EventType.HOGOUT, train, 0.5)
        with self.assertRaises(SimulationError):
            self.sim.step()


class TestGeneratedRuns(unittest.TestCase):
    """Properties of longer runs on generated workloads."""

    def setUp(self):
        self.config = {
            'simulation': {'horizon': 3000.0, 'random_seed': 7},
            'workload': {
                'type': 'generated',
                'mean_interarrival': 5.0,
                'unload_time': {'min': 3.5, 'max': 4.5},
                'crew_remaining_shift': {'min': 6.0, 'max': 11.0},
                'crew_replacement_delay': {'min': 2.5, 'max': 3.5},
            },
            'crew': {'shift_length': 12.0},
        }

    def test_simulator_initialization(self):
        simulator = Simulator(self.config)

        self.assertEqual(simulator.horizon, 3000.0)
        self.assertEqual(simulator.current_time, 0.0)
        self.assertTrue(simulator.event_queue.is_empty())
        self.assertIsInstance(simulator.value_source, GeneratedValueSource)

    def test_time_accounting_closes(self):
        results = Simulator(self.config).run()

        total = (results['dock_idle_time'] + results['dock_busy_time']
                 + results['dock_idle_hogged_time'])
        self.assertEqual(results['termination_reason'], 'drained')
        self.assertGreater(results['trains_served'], 0)
        self.assertAlmostEqual(total, results['final_time'], places=6)
        self.assertGreaterEqual(results['final_time'], 3000.0)

    def test_train_timestamps_are_ordered(self):
        simulator = Simulator(self.config)
        simulator.run()
        collector = simulator.metrics_collector

        for in_system, in_queue in zip(collector.times_in_system, collector.queue_times):
            self.assertGreaterEqual(in_queue, 0.0)
            self.assertGreaterEqual(in_system, in_queue)

    def test_hogouts_happen_and_histogram_is_monotone(self):
        results = Simulator(self.config).run()
        histogram = results['hogout_histogram']

        self.assertEqual(histogram[0], results['trains_served'])
        self.assertGreater(histogram[1], 0)
        for i in range(len(histogram) - 1):
            self.assertGreaterEqual(histogram[i], histogram[i + 1])

    def test_service_follows_arrival_order(self):
        started = []

        class RecordingSimulator(Simulator):
            def _start_service(self, train):
                started.append(train.train_id)
                super()._start_service(train)

        results = RecordingSimulator(self.config).run()

        self.assertEqual(len(started), results['trains_served'])
        self.assertEqual(started, sorted(started))

    def test_horizon_stops_generated_arrivals(self):
        arrivals = []

        class RecordingSimulator(Simulator):
            def _handle_arrival(self, event, train):
                arrivals.append(train.arrival_time)
                super()._handle_arrival(event, train)

        config = dict(self.config, simulation={'horizon': 200.0, 'random_seed': 7})
        results = RecordingSimulator(config).run()

        # Every train arriving within the horizon brings a successor; the
        # first one past it does not
        self.assertEqual(len(arrivals), results['trains_created'])
        self.assertGreater(arrivals[-1], 200.0)
        self.assertTrue(all(t <= 200.0 for t in arrivals[:-1]))

    def test_all_trains_depart_and_are_released(self):
        simulator = Simulator(self.config)
        results = simulator.run()

        self.assertEqual(results['trains_served'], results['trains_created'])
        self.assertEqual(len(simulator.trains), 0)
        self.assertEqual(results['trains_in_queue'], 0)

    def test_same_seed_reproduces_run(self):
        first = Simulator(self.config).run()
        second = Simulator(self.config).run()

        self.assertEqual(first['events_processed'], second['events_processed'])
        self.assertEqual(first['sum_time_in_system'], second['sum_time_in_system'])
        self.assertEqual(first['hogout_histogram'], second['hogout_histogram'])

    def test_invalid_configuration_fails_before_run(self):
        bad_configs = [
            {'simulation': {'horizon': -1.0}},
            {'workload': {'mean_interarrival': 0.0}},
            {'workload': {'unload_time': {'min': 5.0, 'max': 4.0}}},
            {'workload': {'crew_replacement_delay': {'min': 1.0, 'max': 12.0}}},
            {'workload': {'type': 'replay'}},
            {'workload': {'type': 'batch'}},
        ]
        for bad in bad_configs:
            with self.subTest(config=bad):
                with self.assertRaises(ConfigError):
                    Simulator(bad)

    def test_replay_delay_longer_than_shift_rejected(self):
        with self.assertRaises(ConfigError):
            replay_simulator([(0.0, 1.0, 5.0)], [12.5])


class TestEntities(unittest.TestCase):
    """Test cases for the dock and the train arena."""

    def test_dock_attributes_time_to_status(self):
        dock = Dock()
        dock.record_elapsed(2.0)
        dock.status = DockStatus.BUSY
        dock.record_elapsed(5.0)
        dock.status = DockStatus.IDLE_HOGGED
        dock.record_elapsed(6.0)

        self.assertEqual((dock.idle_time, dock.busy_time, dock.idle_hogged_time),
                         (2.0, 3.0, 1.0))
        self.assertEqual(dock.total_time, 6.0)
        with self.assertRaises(SimulationError):
            dock.record_elapsed(5.0)

    def test_train_defaults(self):
        train = Train(train_id=0, crew_id=0, arrival_time=4.0,
                      unload_time=3.0, time_until_hogout=8.0)

        self.assertEqual(train.remaining_unload_time, 3.0)
        self.assertEqual(train.queue_exit_time, 4.0)
        self.assertEqual(train.crew_start_time, 4.0)
        self.assertEqual(train.time_in_queue, 0.0)
        with self.assertRaises(SimulationError):
            train.time_in_system

    def test_arena_reference_counting(self):
        arena = TrainArena()
        train = Train(train_id=3, crew_id=0, arrival_time=0.0,
                      unload_time=1.0, time_until_hogout=5.0)
        arena.add(train)
        arena.acquire(3)
        arena.acquire(3)

        self.assertIs(arena.release(3), train)
        train.train_status = TrainStatus.DEPARTED
        self.assertFalse(arena.dispose_if_drained(3))
        arena.release(3)
        self.assertTrue(arena.dispose_if_drained(3))
        self.assertNotIn(3, arena)
        self.assertEqual(arena.released, 1)
        with self.assertRaises(SimulationError):
            arena.get(3)

    def test_arena_rejects_unbalanced_release(self):
        arena = TrainArena()
        arena.add(Train(train_id=0, crew_id=0, arrival_time=0.0,
                        unload_time=1.0, time_until_hogout=5.0))

        with self.assertRaises(SimulationError):
            arena.release(0)


class TestEventQueue(unittest.TestCase):
    """Test cases for EventQueue."""

    def test_empty_queue(self):
        queue = EventQueue()

        self.assertTrue(queue.is_empty())
        self.assertEqual(queue.size(), 0)
        self.assertIsNone(queue.peek())
        with self.assertRaises(IndexError):
            queue.pop()

    def test_time_ordering(self):
        queue = EventQueue()

        queue.push(Event(time=3.0, event_type=EventType.ARRIVAL, train_id=0, crew_id=0))
        queue.push(Event(time=1.0, event_type=EventType.HOGOUT, train_id=1, crew_id=1))
        queue.push(Event(time=2.0, event_type=EventType.DEPARTURE, train_id=2, crew_id=2))

        self.assertEqual([queue.pop().time for _ in range(3)], [1.0, 2.0, 3.0])
        self.assertTrue(queue.is_empty())

    def test_equal_times_pop_in_insertion_order(self):
        queue = EventQueue()

        for train_id, event_type in enumerate([EventType.DEPARTURE, EventType.ARRIVAL,
                                               EventType.CREW_REPLACEMENT, EventType.HOGOUT]):
            queue.push(Event(time=5.0, event_type=event_type, train_id=train_id, crew_id=0))

        self.assertEqual([queue.pop().train_id for _ in range(4)], [0, 1, 2, 3])
        self.assertEqual(queue.total_scheduled, 4)

    def test_events_are_immutable(self):
        event = Event(time=1.0, event_type=EventType.ARRIVAL, train_id=0, crew_id=0)
        with self.assertRaises(AttributeError):
            event.time = 2.0

    def test_negative_time_rejected(self):
        with self.assertRaises(ValueError):
            Event(time=-1.0, event_type=EventType.ARRIVAL, train_id=0, crew_id=0)


if __name__ == '__main__':
    unittest.main()
