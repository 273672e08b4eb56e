#!/usr/bin/env python3
"""
Sankey diagram of the read flow recorded in a primerscan statistics JSON.

Usage:
    primerscan-sankey SAMPLE_statistics.json output.html
    primerscan-sankey SAMPLE_statistics.json --by primer_pair --theme dark
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List

import plotly.graph_objects as go
from plotly.offline import plot

logger = logging.getLogger(__name__)


def build_flow(report: Dict[str, Any], by: str = 'strand') -> Dict[str, Any]:
    """
    Turn a statistics report into Sankey nodes and links.

    Reads flow from the total into "both primers" / "primer missing", and the
    reads with both primers are split further by strand or by primer pair.
    """
    total = report['total_reads']
    both = report['both_primers_found']

    nodes = [
        {'id': 'total', 'label': 'All reads', 'layer': 0, 'dimension': 'total', 'value': 'all'},
        {'id': 'both', 'label': 'Both primers', 'layer': 1, 'dimension': 'primers', 'value': 'both'},
        {'id': 'missing', 'label': 'Primer missing', 'layer': 1, 'dimension': 'primers', 'value': 'missing'},
    ]
    links = [
        {'source': 'total', 'target': 'both', 'value': both},
        {'source': 'total', 'target': 'missing', 'value': total - both},
    ]

    if by == 'strand':
        unknown = both - report['plus_strand'] - report['minus_strand']
        for key, label, count in (('plus', '+ strand', report['plus_strand']),
                                  ('minus', '- strand', report['minus_strand']),
                                  ('unknown', '? strand', unknown)):
            nodes.append({'id': f'strand_{key}', 'label': label, 'layer': 2,
                          'dimension': 'strand', 'value': key})
            links.append({'source': 'both', 'target': f'strand_{key}', 'value': count})
    elif by == 'primer_pair':
        for pair in report['primer_pairs']:
            name = f"{pair['forward_primer']}-{pair['reverse_primer']}"
            nodes.append({'id': f'pair_{name}', 'label': name, 'layer': 2,
                          'dimension': 'primer_pair', 'value': name})
            links.append({'source': 'both', 'target': f'pair_{name}', 'value': pair['count']})
    else:
        raise ValueError(f"Unknown flow dimension: {by}")

    return {
        'dimensions': ['reads', 'primers', by],
        'count_by': 'reads',
        'total_count': total,
        'nodes': nodes,
        # zero-width links only clutter the diagram
        'links': [link for link in links if link['value'] > 0],
    }


class SankeyVisualizer:
    """Generates plotly Sankey diagrams from read flow data."""

    COLOR_SCHEMES = {
        'light': {
            'total': '#2E86AB',
            'primers_both': '#2E7D32',
            'primers_missing': '#D32F2F',
            'strand_plus': '#1B5E20',
            'strand_minus': '#8BC34A',
            'strand_unknown': '#FF9800',
            'primer_pair': '#2E7D32',
            'default': '#CCCCCC'
        },
        'dark': {
            'total': '#4FC3F7',
            'primers_both': '#4CAF50',
            'primers_missing': '#F44336',
            'strand_plus': '#2E7D32',
            'strand_minus': '#8BC34A',
            'strand_unknown': '#FFC107',
            'primer_pair': '#4CAF50',
            'default': '#9E9E9E'
        }
    }

    def __init__(self, theme: str = 'light'):
        self.colors = self.COLOR_SCHEMES.get(theme, self.COLOR_SCHEMES['light'])

    def generate_diagram(self, data: Dict[str, Any], output_file: str,
                         title: str = "Primerscan Read Flow",
                         width: int = 1200, height: int = 600) -> go.Figure:
        """Generate Sankey diagram from flow data and save it as HTML."""
        self._validate_data(data)

        nodes = data['nodes']
        links = data['links']
        count_by = data['count_by']

        logger.info(f"Generating Sankey with {len(nodes)} nodes and {len(links)} links")

        node_index = {node['id']: i for i, node in enumerate(nodes)}
        node_colors = [self._get_node_color(node) for node in nodes]

        source_indices = [node_index[link['source']] for link in links]
        target_indices = [node_index[link['target']] for link in links]
        values = [link['value'] for link in links]
        link_colors = [self._fade(node_colors[node_index[link['source']]]) for link in links]

        fig = go.Figure(data=[go.Sankey(
            node=dict(
                pad=20,
                thickness=25,
                line=dict(color="rgba(0,0,0,0.3)", width=0.5),
                label=[node['label'] for node in nodes],
                color=node_colors,
            ),
            link=dict(
                source=source_indices,
                target=target_indices,
                value=values,
                color=link_colors,
                hovertemplate='<b>%{source.label}</b> → <b>%{target.label}</b><br>' +
                              'Flow: %{value:,} ' + count_by + '<extra></extra>'
            )
        )])

        subtitle = f"({data['total_count']:,} {count_by} processed)"
        fig.update_layout(
            title=dict(text=f"{title}<br><sub>{subtitle}</sub>", font_size=16),
            font_size=11,
            width=width,
            height=height,
            margin=dict(t=80, b=40, l=40, r=40),
        )

        plot(fig, filename=output_file, auto_open=False)
        logger.info(f"Sankey diagram saved to {output_file}")
        return fig

    def _validate_data(self, data: Dict[str, Any]) -> None:
        """Validate flow data structure."""
        for key in ['dimensions', 'count_by', 'total_count', 'nodes', 'links']:
            if key not in data:
                raise ValueError(f"Missing required key in flow data: {key}")
        if not data['nodes']:
            raise ValueError("No nodes found in data")

        ids = {node['id'] for node in data['nodes']}
        for i, link in enumerate(data['links']):
            if link['source'] not in ids or link['target'] not in ids:
                raise ValueError(f"Link {i} refers to an unknown node")

    def _get_node_color(self, node: Dict[str, Any]) -> str:
        dimension = node['dimension']
        if dimension == 'total':
            return self.colors['total']
        elif dimension in ('primers', 'strand'):
            return self.colors.get(f"{dimension}_{node['value']}", self.colors['default'])
        elif dimension == 'primer_pair':
            return self.colors['primer_pair']
        return self.colors['default']

    @staticmethod
    def _fade(color: str) -> str:
        """Semi-transparent version of a hex color for links."""
        if not color.startswith('#'):
            return 'rgba(200,200,200,0.3)'
        r = int(color[1:3], 16)
        g = int(color[3:5], 16)
        b = int(color[5:7], 16)
        return f'rgba({r},{g},{b},0.4)'


def main(argv: List[str] = None):
    parser = argparse.ArgumentParser(
        description="Generate an interactive Sankey diagram from primerscan statistics JSON")
    parser.add_argument('json_file', help='Statistics JSON written by primerscan')
    parser.add_argument('output_file', nargs='?', default='sankey_diagram.html',
                        help='Output HTML file (default: sankey_diagram.html)')
    parser.add_argument('--by', choices=['strand', 'primer_pair'], default='strand',
                        help='How to split reads with both primers (default: strand)')
    parser.add_argument('--width', type=int, default=1200, help='Diagram width in pixels (default: 1200)')
    parser.add_argument('--height', type=int, default=600, help='Diagram height in pixels (default: 600)')
    parser.add_argument('--theme', choices=['light', 'dark'], default='light', help='Color theme (default: light)')

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format='%(levelname)s - %(message)s')

    try:
        with open(args.json_file, 'r') as f:
            report = json.load(f)

        data = build_flow(report, args.by)
        visualizer = SankeyVisualizer(theme=args.theme)
        visualizer.generate_diagram(data, args.output_file,
                                    title=f"Primerscan Read Flow: {report.get('sample_name', '')}",
                                    width=args.width, height=args.height)
    except FileNotFoundError:
        logger.error(f"JSON file not found: {args.json_file}")
        sys.exit(1)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON file: {e}")
        sys.exit(1)
    except (KeyError, ValueError) as e:
        logger.error(f"Invalid statistics data: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
