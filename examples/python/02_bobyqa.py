"""Bound-constrained solve with BOBYQA.

This example shows:
- Setting lower and upper bounds
- Tuning the trust-region radii and the evaluation budget
- Watching progress through an iteration callback
"""

from primabridge import build_options, build_problem, minimize


def objective(x, data):
    return (x[0] - 5.0) ** 2 + (x[1] - 4.0) ** 2


def progress(info):
    print(f"  nf={info.nf:3d} tr={info.tr:3d} f={info.f:.6g} x={info.x.tolist()}")


problem = build_problem(2)
problem.x0 = [0.0, 0.0]
problem.xl = [-6.0, -6.0]
problem.xu = [3.0, 6.0]
problem.set_objective(objective)

options = build_options()
options.rhobeg = 1.0
options.rhoend = 1e-3
options.maxfun = 200
options.callback = progress
print(options)

with minimize("bobyqa", problem, options) as result:
    print(f"\nx = {result.x.tolist()}")
    print(f"f = {result.f:.6g}, nf = {result.nf}, status = {result.status.name}")
