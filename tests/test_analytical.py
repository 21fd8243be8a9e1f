"""Tests for the open Jackson network solver."""

import unittest

from liftsim.analytical.network_solver import (
    NOT_APPLICABLE,
    AnalyticalNetworkSolver,
    NetworkTopology,
    StationSpec,
    mmc_metrics,
)
from liftsim.core.errors import InvalidParameter, UnstableSystem
from liftsim.models.facility_config import Configuration, StageConfig


class TestMMCMetrics(unittest.TestCase):
    """Closed-form single-station results."""

    def test_mm1(self):
        lam, mu = 0.5, 1.0
        m = mmc_metrics('lift', lam, mu, 1)

        self.assertAlmostEqual(m.mean_sojourn_time, 1 / (mu - lam))
        self.assertAlmostEqual(m.mean_number_in_system, lam / (mu - lam))
        self.assertAlmostEqual(m.mean_queue_length, 0.5)
        self.assertAlmostEqual(m.mean_waiting_time, 1.0)
        self.assertAlmostEqual(m.probability_no_customers, 0.5)
        self.assertEqual(m.throughput, lam)

    def test_mm2(self):
        m = mmc_metrics('lift', 0.8, 1.0, 2)

        self.assertAlmostEqual(m.utilization, 0.4)
        self.assertAlmostEqual(m.probability_no_customers, 0.428571, places=6)
        self.assertAlmostEqual(m.mean_queue_length, 0.152381, places=6)
        self.assertAlmostEqual(m.mean_number_in_system, 0.952381, places=6)
        self.assertAlmostEqual(m.mean_sojourn_time, 1.190476, places=6)

    def test_utilization_is_exact(self):
        m = mmc_metrics('lift', 0.3, 0.25, 2)
        self.assertEqual(m.utilization, 0.3 / (2 * 0.25))

    def test_littles_law_per_station(self):
        m = mmc_metrics('run', 2.5, 1.0, 3)
        self.assertAlmostEqual(m.mean_number_in_system, m.arrival_rate * m.mean_sojourn_time)
        self.assertAlmostEqual(m.mean_queue_length, m.arrival_rate * m.mean_waiting_time)

    def test_unstable_station(self):
        with self.assertRaises(UnstableSystem) as ctx:
            mmc_metrics('lift', 1.0, 1.0, 1)
        self.assertEqual(ctx.exception.station, 'lift')
        self.assertEqual(ctx.exception.utilization, 1.0)
        self.assertIn("lift", str(ctx.exception))

    def test_idle_station(self):
        m = mmc_metrics('run', 0.0, 0.5, 1)
        self.assertEqual(m.utilization, 0.0)
        self.assertEqual(m.probability_no_customers, 1.0)
        self.assertEqual(m.mean_sojourn_time, 2.0)

    def test_invalid_parameters(self):
        with self.assertRaises(InvalidParameter):
            mmc_metrics('lift', 0.5, 0.0, 1)
        with self.assertRaises(InvalidParameter):
            mmc_metrics('lift', 0.5, 1.0, 0)
        with self.assertRaises(InvalidParameter):
            mmc_metrics('lift', -0.5, 1.0, 1)


class TestNetworkTopology(unittest.TestCase):

    def test_tandem(self):
        topology = NetworkTopology.tandem(['lift', 'run'])
        self.assertEqual(topology.routing, ((0.0, 1.0), (0.0, 0.0)))
        self.assertEqual(topology.index('run'), 1)

    def test_row_sum_above_one(self):
        with self.assertRaises(InvalidParameter):
            NetworkTopology(('a', 'b'), ((0.6, 0.6), (0.0, 0.0)))

    def test_negative_probability(self):
        with self.assertRaises(InvalidParameter):
            NetworkTopology(('a', 'b'), ((0.0, -0.1), (0.0, 0.0)))

    def test_shape_mismatch(self):
        with self.assertRaises(InvalidParameter):
            NetworkTopology(('a', 'b'), ((0.0, 1.0),))

    def test_duplicate_names(self):
        with self.assertRaises(InvalidParameter):
            NetworkTopology(('a', 'a'), ((0.0, 0.0), (0.0, 0.0)))


class TestAnalyticalNetworkSolver(unittest.TestCase):
    """Test cases for AnalyticalNetworkSolver."""

    def setUp(self):
        self.configuration = Configuration(
            horizon=600,
            interarrival_rate=0.05,
            stages=(StageConfig('lift', 0.1), StageConfig('run', 0.1)),
        )

    def test_tandem_lift_and_run(self):
        result = AnalyticalNetworkSolver.from_configuration(self.configuration).solve()

        self.assertAlmostEqual(result.throughput, 0.05)
        self.assertAlmostEqual(result.station('lift').mean_sojourn_time, 20.0)
        self.assertAlmostEqual(result.station('run').mean_sojourn_time, 20.0)
        self.assertAlmostEqual(result.mean_number_in_system, 2.0)
        self.assertAlmostEqual(result.mean_sojourn_time, 40.0)
        self.assertAlmostEqual(result.station('run').utilization, 0.5, places=12)

    def test_solve_is_idempotent(self):
        solver = AnalyticalNetworkSolver.from_configuration(self.configuration)
        self.assertEqual(solver.solve(), solver.solve())

    def test_feedback_loop(self):
        # Half of the customers leaving 'a' go round again: lambda = 1 / (1 - 0.5)
        topology = NetworkTopology(('a',), ((0.5,),))
        solver = AnalyticalNetworkSolver(topology, [StationSpec('a', 4.0, 1, 1.0)])

        rates = solver.solve_traffic()
        self.assertAlmostEqual(rates[0], 2.0)
        self.assertAlmostEqual(solver.solve().station('a').utilization, 0.5)

    def test_two_station_feedback(self):
        topology = NetworkTopology(('a', 'b'), ((0.0, 1.0), (0.2, 0.0)))
        solver = AnalyticalNetworkSolver(topology, [
            StationSpec('a', 5.0, 1, 1.0),
            StationSpec('b', 5.0, 1, 0.0),
        ])
        rates = solver.solve_traffic()

        self.assertAlmostEqual(rates[0], 1.25)
        self.assertAlmostEqual(rates[1], 1.25)
        # Network throughput equals the external arrival rate
        self.assertAlmostEqual(solver.solve().throughput, 1.0)

    def test_unreached_station(self):
        topology = NetworkTopology(('a', 'b'), ((0.0, 0.0), (0.0, 0.0)))
        solver = AnalyticalNetworkSolver(topology, [
            StationSpec('a', 1.0, 1, 0.5),
            StationSpec('b', 0.25, 1, 0.0),
        ])
        b = solver.solve().station('b')

        self.assertEqual(b.arrival_rate, 0.0)
        self.assertEqual(b.mean_sojourn_time, 4.0)

    def test_routing_without_exit(self):
        topology = NetworkTopology(('a',), ((1.0,),))
        solver = AnalyticalNetworkSolver(topology, [StationSpec('a', 1.0, 1, 0.5)])
        with self.assertRaises(InvalidParameter):
            solver.solve_traffic()

    def test_unstable_network(self):
        configuration = self.configuration.with_arrival_rate(1 / 7)
        solver = AnalyticalNetworkSolver.from_configuration(configuration)

        with self.assertRaises(UnstableSystem) as ctx:
            solver.solve()
        self.assertEqual(ctx.exception.station, 'lift')
        self.assertGreater(ctx.exception.utilization, 1.0)

    def test_spec_mismatch(self):
        topology = NetworkTopology.tandem(['lift', 'run'])
        with self.assertRaises(InvalidParameter):
            AnalyticalNetworkSolver(topology, [StationSpec('lift', 1.0)])
        with self.assertRaises(InvalidParameter):
            AnalyticalNetworkSolver(topology, [
                StationSpec('lift', 1.0, 1, -1.0),
                StationSpec('run', 1.0),
            ])

    def test_output_table(self):
        table = AnalyticalNetworkSolver.from_configuration(self.configuration).solve().as_table()

        self.assertEqual(list(table), ['network', 'lift', 'run'])
        self.assertIs(table['network']['utilization'], NOT_APPLICABLE)
        self.assertIs(table['network']['probability_no_customers'], NOT_APPLICABLE)
        self.assertAlmostEqual(table['network']['mean_sojourn_time'], 40.0)
        self.assertAlmostEqual(table['lift']['utilization'], 0.5)
        self.assertAlmostEqual(table['lift']['probability_no_customers'], 0.5)

    def test_finite_queue_warns(self):
        configuration = self.configuration.with_stage('lift', queue_capacity=5)
        with self.assertLogs('liftsim.AnalyticalNetworkSolver', level='WARNING'):
            AnalyticalNetworkSolver.from_configuration(configuration)


if __name__ == '__main__':
    unittest.main()
