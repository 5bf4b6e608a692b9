from hact.logger import verbose, quiet
from hact.Errors import (NumericalWarning, ConvergenceError, SingularSystemError, BracketError,
                         GeneratorError, EigenvalueError)
from hact.Parameters import param_econ, param_econ_diffusion, param_econ_rouwenhorst, param_num
from hact.HJB import Implicit, Explicit, solve_HJB, solve_HJB_implicit, solve_HJB_explicit
from hact.KF import solve_KF, aggregate_assets, METHODS
from hact.Steady_State import excess_demand, solve_steady_state
from hact.Transition_Path import solve_transition
from hact.Model import get_parameters, get_ss, get_transition

__version__ = "0.1.0"
