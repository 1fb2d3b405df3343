"""
reachgraph application layer.

- `errors`: exception taxonomy
- `config`: `AnalysisConfig` and its JSON loader
- `workspace`: one configured run, from program directory to output files
- `statistics`: run metrics and the text report
"""
