from envs.base import Action, Range, RLProblem
from envs.goal_env import GoalWalk
from envs.acrobot_env import Acrobot
from envs.mcar3d_env import MountainCar3D

__all__ = ["Action", "Range", "RLProblem", "GoalWalk", "Acrobot", "MountainCar3D"]
