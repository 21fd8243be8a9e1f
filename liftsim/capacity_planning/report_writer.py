"""
Report writer for capacity planning - generates human-readable summaries.
"""
from typing import Any, Dict, Optional

SCENARIO_LABELS = {
    'baseline': 'Baseline',
    'add_capacity': 'Add server',
    'tune_service': 'Tune service',
}


def _fmt(value: Optional[float], spec: str = ".2f") -> str:
    if value is None:
        return "n/a"
    return format(value, spec)


class ReportWriter:
    """Generates human-readable capacity planning reports."""

    def generate_summary(self, results: Dict[str, Any]) -> str:
        """Generate human-readable summary from sweep results."""
        lines = []

        # Header
        lines.append("=" * 60)
        lines.append("   CAPACITY PLANNING REPORT")
        lines.append(f"   Bottleneck station: {results.get('bottleneck', 'unknown')}")
        lines.append(f"   Date: {results.get('timestamp', 'N/A')}")
        lines.append("=" * 60)
        lines.append("")

        scenarios = results.get('scenarios', {})
        if not scenarios:
            lines.append("NO SCENARIOS EVALUATED")
            return "\n".join(lines)

        # Scenario definitions
        lines.append("SCENARIOS")
        lines.append("━" * 60)
        bottleneck = results.get('bottleneck')
        for name, scenario in scenarios.items():
            stations = scenario['configuration']['stations']
            station = next((s for s in stations if s['name'] == bottleneck), stations[0])
            lines.append(
                f"{SCENARIO_LABELS.get(name, name):<14} {station['name']}: "
                f"c={station['capacity']}, mu={station['service_rate']:.4g}, "
                f"max stable rate={scenario['max_sustainable_rate']:.4g}"
            )
        lines.append("")

        lines.append(self.generate_sweep_table(results))
        lines.append("")

        # Recommendation
        lines.append("RECOMMENDATION")
        lines.append("━" * 60)
        for rec in results.get('recommendations', []):
            label = SCENARIO_LABELS.get(rec['best_scenario'], rec['best_scenario'])
            status = "stable" if rec['stable'] else "UNSTABLE in every scenario"
            lines.append(
                f"lambda={rec['arrival_rate']:<8.4g} -> {label:<14} "
                f"W={_fmt(rec['mean_sojourn_time'])} ({status})"
            )
        lines.append("")
        return "\n".join(lines)

    def generate_sweep_table(self, results: Dict[str, Any]) -> str:
        """Generate ASCII table of mean sojourn times per scenario and rate."""
        scenarios = results.get('scenarios', {})
        rates = results.get('arrival_rates', [])
        if not scenarios or not rates:
            return "No sweep points available"

        lines = []
        lines.append("Mean sojourn time (analytical W | simulated flow time)")
        lines.append("─" * 80)
        header = f"{'lambda':<10}" + "".join(
            f"{SCENARIO_LABELS.get(name, name):<23}" for name in scenarios
        )
        lines.append(header)
        lines.append("─" * 80)

        for i, rate in enumerate(rates):
            row = f"{rate:<10.4g}"
            for scenario in scenarios.values():
                point = scenario['points'][i]
                if point['stable']:
                    analytical = _fmt(point['analytical']['network']['mean_sojourn_time'])
                else:
                    analytical = "unstable"
                simulated = _fmt(point['simulation']['metrics']['mean_flow_time']['mean'])
                row += f"{analytical + ' | ' + simulated:<23}"
            lines.append(row)

        lines.append("─" * 80)
        return "\n".join(lines)
