from .hypothesis import FlashHypothesis, FlashHypothesisCollection
from .trajectory import Trajectory, RecoTrack, MCTrack, as_trajectory
