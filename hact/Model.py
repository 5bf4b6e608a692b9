# This file constructs the entry points to solve the Huggett model in continuous time

from hact.Parameters import param_econ, param_econ_diffusion, param_econ_rouwenhorst, param_num
from hact.Steady_State import solve_steady_state
from hact.Transition_Path import solve_transition

MODELS = {'poisson': param_econ, 'diffusion': param_econ_diffusion,
          'rouwenhorst': param_econ_rouwenhorst}


# Load Parameters
def get_parameters(model='poisson', Na=500, Nz=None, grid='uniform', grid_kwargs=None, **overrides):
    if model not in MODELS:
        raise ValueError(f'unknown model {model!r}, choose one of {tuple(MODELS)}')
    p = MODELS[model](**overrides)                                        # get economic parameters
    n = param_num(p, Na=Na, Nz=Nz, grid=grid, **(grid_kwargs or {}))      # get grid and convergence parameters
    return p, n


# Calculate Steady State
def get_ss(p, n, bracket=None, **kwargs):
    return solve_steady_state(p, n, bracket=bracket, **kwargs)


# Transition dynamics after an interest rate shock that dies out at rate decay
def get_transition(p, n, ss, dr, dt=1.0, T=200, decay=0.1):
    r_t = lambda t: ss['r'] + dr * (1 - decay * dt) ** (t / dt)
    return solve_transition(p, n, r_t, dt, ss, ss['g'], N_t=T)
