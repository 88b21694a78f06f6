"""Nonlinearly constrained solve with COBYLA.

This example shows:
- An objective that also returns constraint values (constraints <= 0)
- Passing user data to the objective
- Handling callback errors and solver failures
"""

from primabridge import (
    CallbackError,
    SolveError,
    build_options,
    build_problem,
    minimize,
)


def objective_constraints(x, data):
    data["calls"] += 1
    f = (x[0] - 5.0) ** 2 + (x[1] - 4.0) ** 2
    return f, [x[0] ** 2 - 9.0]


problem = build_problem(2)
problem.x0 = [0.0, 0.0]
problem.set_objective_constraints(objective_constraints, m_nlcon=1)

options = build_options()
options.data = {"calls": 0}
options.ctol = 1e-8
options.iprint = "exit"
options.callback = lambda info: print(f"  nf={info.nf} f={info.f:.6g} cstrv={info.cstrv:.2g}")

try:
    with minimize("cobyla", problem, options) as result:
        print(f"\nx = {result.x.tolist()}")
        print(f"constraints = {result.nlconstr.tolist()}")
        print(f"f = {result.f:.6g}, success = {result.success}")
except CallbackError as e:
    print(f"Objective raised: {e.__cause__!r}")
except SolveError as e:
    print(f"Solver failed with {e.status}: {e}")
    e.result.close()

print(f"Objective called {options.data['calls']} times")
