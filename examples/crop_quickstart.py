import sys
from time import perf_counter

from croptree import PredictionService, cross_validate, enable_logging, load_csv, train_final_model

path = sys.argv[1] if len(sys.argv) > 1 else "Crop_recommendation.csv"
enable_logging("INFO")

ds = load_csv(path)
print(ds.column_stats())

t0 = perf_counter()
report = cross_validate(ds, k=5, seed=1, confidence_factor=0.25, min_instances_per_leaf=2)
print(f"cross-validation: {perf_counter()-t0:.3f} s")
print(report.format_table())

tree = train_final_model(ds, confidence_factor=0.25, min_instances_per_leaf=2)
tree.print_tree()
for rule in tree.export_rules()[:10]:
    print(rule)
try:
    tree.export_graphviz("crop_tree", format="dot")
except RuntimeError as e:
    print(f"Skipping Graphviz export: {e}")

service = PredictionService(tree, ds.classes)
print(service.predict([90, 42, 43, 20.88, 82.0, 6.5, 202.94]).format())
