from .calculator import PhotonYieldCalculator
from .visibility import VisibilityTable, PhotonLibVisibility
from .creator import FlashHypothesisCreator
