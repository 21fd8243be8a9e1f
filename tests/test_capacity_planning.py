"""Tests for replications and the capacity planning module."""

import json
import tempfile
import unittest
from pathlib import Path

import yaml

from liftsim.capacity_planning.planner import (
    ADD_CAPACITY,
    BASELINE,
    TUNE_SERVICE,
    CapacityPlanner,
    run_capacity_planning,
)
from liftsim.capacity_planning.report_writer import ReportWriter
from liftsim.core.errors import InvalidParameter
from liftsim.core.replications import confidence_interval, run_replications
from liftsim.models.facility_config import Configuration, StageConfig


def small_facility(rate=0.05, horizon=300):
    return Configuration(
        horizon=horizon,
        interarrival_rate=rate,
        stages=(StageConfig('lift', 0.1), StageConfig('run', 0.2)),
    )


class TestReplications(unittest.TestCase):
    """Test cases for replicated runs and confidence intervals."""

    def test_confidence_interval(self):
        estimate = confidence_interval([1.0, 2.0, 3.0], 0.95)

        self.assertEqual(estimate.samples, 3)
        self.assertAlmostEqual(estimate.mean, 2.0)
        self.assertAlmostEqual(estimate.std, 1.0)
        # t(0.975, 2) = 4.3027
        self.assertAlmostEqual(estimate.ci_high - estimate.mean, 4.3027 / 3 ** 0.5, places=3)
        self.assertAlmostEqual(estimate.mean - estimate.ci_low, estimate.ci_high - estimate.mean)

    def test_confidence_interval_edge_cases(self):
        single = confidence_interval([5.0])
        self.assertEqual((single.ci_low, single.mean, single.ci_high), (5.0, 5.0, 5.0))

        empty = confidence_interval([None, None])
        self.assertIsNone(empty.mean)
        self.assertEqual(empty.samples, 0)

        partial = confidence_interval([1.0, None, 3.0])
        self.assertEqual(partial.samples, 2)

    def test_run_replications(self):
        report = run_replications(small_facility(), replications=3, base_seed=5)

        self.assertEqual(report.seeds, (5, 6, 7))
        self.assertEqual(len(report.summaries), 3)
        self.assertEqual(report.estimates['throughput'].samples, 3)
        self.assertIn('lift', report.utilization)

        data = report.as_dict()
        self.assertEqual(data['replications'], 3)
        self.assertIn('mean_flow_time', data['metrics'])

    def test_replications_are_reproducible(self):
        first = run_replications(small_facility(), replications=2, base_seed=1)
        second = run_replications(small_facility(), replications=2, base_seed=1)
        self.assertEqual(first.summaries, second.summaries)

    def test_processes_do_not_change_results(self):
        serial = run_replications(small_facility(), replications=2, base_seed=3)
        parallel = run_replications(small_facility(), replications=2, base_seed=3,
                                    processes=2)
        self.assertEqual(serial.summaries, parallel.summaries)

    def test_invalid_arguments(self):
        with self.assertRaises(ValueError):
            run_replications(small_facility(), replications=0)
        with self.assertRaises(ValueError):
            run_replications(small_facility(), confidence=1.5)


class TestCapacityPlanner(unittest.TestCase):
    """Test cases for CapacityPlanner."""

    def setUp(self):
        self.planner = CapacityPlanner(small_facility(), replications=2, progress=False)

    def test_bottleneck(self):
        self.assertEqual(self.planner.bottleneck(), 'lift')

    def test_scenarios(self):
        scenarios = self.planner.scenarios()

        self.assertEqual(set(scenarios), {BASELINE, ADD_CAPACITY, TUNE_SERVICE})
        self.assertEqual(scenarios[ADD_CAPACITY].stage('lift').capacity, 2)
        self.assertAlmostEqual(scenarios[TUNE_SERVICE].stage('lift').service_rate, 0.125)
        # Only the bottleneck changes
        self.assertEqual(scenarios[ADD_CAPACITY].stage('run'), small_facility().stage('run'))

    def test_max_sustainable_rate(self):
        scenarios = self.planner.scenarios()
        self.assertAlmostEqual(CapacityPlanner.max_sustainable_rate(scenarios[BASELINE]), 0.1)
        self.assertAlmostEqual(CapacityPlanner.max_sustainable_rate(scenarios[ADD_CAPACITY]), 0.2)

    def test_invalid_tune_factor(self):
        with self.assertRaises(InvalidParameter):
            CapacityPlanner(small_facility(), tune_factor=0.0)

    def test_sweep_recommends_extra_server(self):
        results = self.planner.sweep([0.15, 0.05])

        self.assertEqual(results['arrival_rates'], [0.05, 0.15])
        self.assertEqual(results['bottleneck'], 'lift')

        baseline_points = results['scenarios'][BASELINE]['points']
        self.assertTrue(baseline_points[0]['stable'])
        self.assertFalse(baseline_points[1]['stable'])
        self.assertEqual(baseline_points[1]['unstable_station'], 'lift')
        self.assertFalse(results['scenarios'][TUNE_SERVICE]['points'][1]['stable'])

        low, high = results['recommendations']
        self.assertEqual(low['best_scenario'], ADD_CAPACITY)
        self.assertEqual(high['best_scenario'], ADD_CAPACITY)
        self.assertTrue(high['stable'])

    def test_sojourn_estimate_without_finished_customers(self):
        point = {
            'stable': False,
            'simulation': {'metrics': {'mean_flow_time': {'mean': None}}},
        }
        self.assertIsNone(CapacityPlanner.sojourn_estimate(point))

    def test_overwhelmed_sweep_writes_standard_json(self):
        # Service so slow that nobody finishes within the horizon
        stalled = Configuration(
            horizon=50,
            interarrival_rate=0.5,
            stages=(StageConfig('lift', 1e-6), StageConfig('run', 1e-6)),
        )
        planner = CapacityPlanner(stalled, replications=1, progress=False)
        results = planner.sweep([0.5])

        recommendation = results['recommendations'][0]
        self.assertFalse(recommendation['stable'])
        self.assertIsNone(recommendation['mean_sojourn_time'])

        # Strict JSON: no Infinity or NaN tokens
        json.dumps(results, allow_nan=False)
        summary = ReportWriter().generate_summary(results)
        self.assertIn("W=n/a", summary)

    def test_sweep_needs_rates(self):
        with self.assertRaises(InvalidParameter):
            self.planner.sweep([])

    def test_report(self):
        results = self.planner.sweep([0.05])
        summary = ReportWriter().generate_summary(results)

        self.assertIn("CAPACITY PLANNING REPORT", summary)
        self.assertIn("Bottleneck station: lift", summary)
        self.assertIn("Add server", summary)
        self.assertIn("RECOMMENDATION", summary)

    def test_save_report(self):
        results = self.planner.sweep([0.05])
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / 'plan.json'
            self.planner.save_report(results, str(path))
            with open(path) as f:
                loaded = json.load(f)

        self.assertEqual(loaded['bottleneck'], 'lift')
        self.assertEqual(len(loaded['recommendations']), 1)


class TestRunCapacityPlanning(unittest.TestCase):

    def test_end_to_end(self):
        config = {
            'simulation': {'horizon': 200, 'random_seed': 1},
            'arrivals': {'rate': 0.05},
            'stations': [
                {'name': 'lift', 'service_rate': 0.1},
                {'name': 'run', 'service_rate': 0.2},
            ],
            'capacity_planning': {'replications': 1, 'progress': False},
        }
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / 'facility.yaml'
            with open(config_path, 'w') as f:
                yaml.dump(config, f)
            output_path = Path(tmpdir) / 'out' / 'plan.json'

            results = run_capacity_planning(str(config_path), str(output_path),
                                            arrival_rates=[0.05, 0.08])

            self.assertTrue(output_path.exists())
            self.assertTrue(output_path.with_suffix('.txt').exists())

        self.assertEqual(results['replications'], 1)
        self.assertEqual(len(results['recommendations']), 2)


if __name__ == '__main__':
    unittest.main()
