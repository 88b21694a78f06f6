"""Linearly constrained solve with LINCOA.

This example shows:
- Adding linear inequality and equality constraints (row-major matrices)
- Stopping early once the objective is good enough (ftarget)
- Keeping a plain copy of the result after it is released
"""

from primabridge import build_options, build_problem, minimize


def objective(x, data):
    return (x[0] - 5.0) ** 2 + (x[1] - 4.0) ** 2


problem = build_problem(2)
problem.x0 = [0.0, 0.0]
problem.set_objective(objective)

# x1 + x2 <= 5
problem.set_linear_inequality([[1.0, 1.0]], [5.0])
print(problem)

options = build_options()
options.ftarget = 8.5
options.callback = lambda info: print(f"  nf={info.nf:3d} f={info.f:.6g} cstrv={info.cstrv:.2g}")

with minimize("lincoa", problem, options) as result:
    solution = result.snapshot()

print(f"x = {solution.x}")
print(f"f = {solution.f:.6g}, cstrv = {solution.cstrv:.2g}")
print(f"status = {solution.status.name}: {solution.message}")
