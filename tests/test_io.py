"""Tests for table exports, file helpers and logging setup."""

import json
import logging
import tempfile
import unittest
from pathlib import Path

import pandas as pd
import yaml

from liftsim.analytical.network_solver import AnalyticalNetworkSolver
from liftsim.core.simulator import Simulator
from liftsim.models.facility_config import Configuration, StageConfig
from liftsim.utils.io import (
    analytical_frame,
    customer_frame,
    event_frame,
    export_simulation,
    occupancy_frame,
    save_json,
    save_yaml,
)
from liftsim.utils.logger import setup_logger


class TestSimulationTables(unittest.TestCase):
    """Test cases for the pandas views of a simulation run."""

    @classmethod
    def setUpClass(cls):
        # Loss system at the lift so some customers are rejected
        cls.configuration = Configuration(
            horizon=100,
            interarrival_rate=0.5,
            stages=(
                StageConfig('lift', 0.1, capacity=1, queue_capacity=0),
                StageConfig('run', 0.2),
            ),
        )
        cls.output = Simulator(cls.configuration, seed=5).run()

    def test_customer_frame(self):
        frame = customer_frame(self.output)

        self.assertEqual(list(frame.columns), [
            'customer_id', 'arrival_time', 'exit_time', 'status', 'rejected',
            'rejected_at', 'activity_time', 'waiting_time', 'flow_time',
        ])
        self.assertEqual(len(frame), self.output.total_arrivals)
        self.assertIn('rejected', set(frame['status']))
        self.assertEqual(int(frame['rejected'].sum()), self.output.rejected)
        self.assertEqual(set(frame.loc[frame['rejected'], 'rejected_at']), {'lift'})

    def test_occupancy_frame(self):
        frame = occupancy_frame(self.output)

        self.assertEqual(list(frame.columns),
                         ['resource', 'time', 'queue_length', 'busy_servers', 'capacity'])
        self.assertEqual(len(frame), len(self.output.occupancy))
        self.assertEqual(set(frame['resource']), {'lift', 'run'})
        self.assertTrue((frame['busy_servers'] <= frame['capacity']).all())
        self.assertEqual(int(frame.loc[frame['resource'] == 'lift', 'queue_length'].max()), 0)

    def test_event_frame(self):
        frame = event_frame(self.output)

        self.assertEqual(list(frame.columns),
                         ['time', 'event_type', 'customer_id', 'resource_id'])
        self.assertEqual(len(frame), len(self.output.event_log))
        self.assertTrue(frame['time'].is_monotonic_increasing)
        self.assertEqual(int((frame['event_type'] == 'arrival').sum()),
                         self.output.total_arrivals)

    def test_export_simulation(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            written = export_simulation(self.output, str(Path(tmpdir) / 'run'))

            self.assertEqual(set(written), {'occupancy', 'customers', 'events'})
            for path in written.values():
                self.assertTrue(path.exists())

            customers = pd.read_csv(written['customers'])
            events = pd.read_csv(written['events'])
            occupancy = pd.read_csv(written['occupancy'])

        self.assertEqual(len(customers), self.output.total_arrivals)
        self.assertEqual(len(events), len(self.output.event_log))
        self.assertEqual(len(occupancy), len(self.output.occupancy))


class TestAnalyticalFrame(unittest.TestCase):

    def test_table_layout(self):
        configuration = Configuration(
            horizon=100,
            interarrival_rate=0.05,
            stages=(StageConfig('lift', 0.1), StageConfig('run', 0.1)),
        )
        result = AnalyticalNetworkSolver.from_configuration(configuration).solve()
        frame = analytical_frame(result)

        self.assertEqual(list(frame.columns), ['network', 'lift', 'run'])
        self.assertEqual(set(frame.index), {
            'throughput', 'mean_number_in_system', 'mean_sojourn_time',
            'probability_no_customers', 'utilization',
        })
        self.assertTrue(pd.isna(frame.loc['utilization', 'network']))
        self.assertAlmostEqual(frame.loc['utilization', 'lift'], 0.5)
        self.assertAlmostEqual(frame.loc['mean_sojourn_time', 'network'], 40.0)


class TestFileHelpers(unittest.TestCase):

    def test_save_json_creates_parents(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / 'nested' / 'report.json'
            save_json({'rate': 0.05, 'stable': True, 'estimate': None}, str(path))
            with open(path) as f:
                self.assertEqual(json.load(f), {'rate': 0.05, 'stable': True, 'estimate': None})

    def test_save_yaml_keeps_key_order(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / 'results.yaml'
            save_yaml({'simulation': {'horizon': 600}, 'arrivals': {'rate': 0.05}}, str(path))
            text = path.read_text()
            loaded = yaml.safe_load(text)

        self.assertLess(text.index('simulation'), text.index('arrivals'))
        self.assertEqual(loaded['arrivals']['rate'], 0.05)


class TestLogger(unittest.TestCase):
    """Test cases for setup_logger."""

    def tearDown(self):
        setup_logger("liftsim", level="INFO")

    def test_components_live_under_liftsim(self):
        logger = setup_logger("Simulator")
        self.assertEqual(logger.name, "liftsim.Simulator")
        self.assertIs(setup_logger("liftsim.Simulator"), logger)

    def test_debug_on_root_reaches_components(self):
        component = setup_logger("ResourceModel")
        self.assertFalse(component.isEnabledFor(logging.DEBUG))

        setup_logger("liftsim", verbose=True)

        self.assertTrue(setup_logger("ResourceModel").isEnabledFor(logging.DEBUG))

    def test_fetching_does_not_reset_level(self):
        setup_logger("QuietComponent", level="WARNING")
        self.assertEqual(setup_logger("QuietComponent").level, logging.WARNING)

    def test_single_handler(self):
        for _ in range(3):
            setup_logger("liftsim")
            setup_logger("Simulator")

        self.assertEqual(len(logging.getLogger("liftsim").handlers), 1)
        self.assertEqual(logging.getLogger("liftsim.Simulator").handlers, [])


if __name__ == '__main__':
    unittest.main()
