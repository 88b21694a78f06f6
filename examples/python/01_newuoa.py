"""Unconstrained solve — NEWUOA and UOBYQA on a quadratic.

This example shows:
- Building a problem descriptor and attaching an objective
- Solving with two unconstrained algorithms
- Printing progress from an iteration callback
- Reading the result inside a ``with`` block
"""

import primabridge
from primabridge import build_options, build_problem, minimize


def objective(x, data):
    return (x[0] - 5.0) ** 2 + (x[1] - 4.0) ** 2


problem = build_problem(2)
problem.x0 = [0.0, 0.0]
problem.set_objective(objective)

options = build_options()
options.callback = lambda info: print(f"  nf={info.nf:3d} f={info.f:.6g}")

for algorithm in (primabridge.Algorithm.NEWUOA, primabridge.Algorithm.UOBYQA):
    with minimize(algorithm, problem, options) as result:
        print(f"{algorithm.name}: x={result.x.tolist()} f={result.f:.3g} nf={result.nf}")
        print(f"  {result.message}")

# The descriptor is untouched by a solve
print(f"\nx0 after solving: {problem.x0}")
