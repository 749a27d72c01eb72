"""Vector math, eigen analysis and fitting of demagnetization data."""

__version__ = "0.1.0"

from .eigen import (
    EigenResult,
    direction_eigenvalues,
    eigen_decomposition,
    eigenvalues,
    orientation_matrix,
    sort_eigen,
)
from .fit import (
    DemagnetizationStep,
    GreatCircleFit,
    Orientation,
    PCAComponent,
    fit_great_circles,
    fit_pca,
    to_geographic,
    v_close,
)
from .general import (
    Direction,
    Pole,
    Vector3,
    angle,
    angle_between,
    cart,
    correct_bedding,
    flip,
    inv_poles,
    paleolatitude,
    poles,
    rotate_to,
    rotate_to_pole,
    to_dir,
    unit_vector,
    validate_direction,
    validate_directions,
)

__all__ = [
    # eigen
    "EigenResult",
    "direction_eigenvalues",
    "eigen_decomposition",
    "eigenvalues",
    "orientation_matrix",
    "sort_eigen",
    # fit
    "DemagnetizationStep",
    "GreatCircleFit",
    "Orientation",
    "PCAComponent",
    "fit_great_circles",
    "fit_pca",
    "to_geographic",
    "v_close",
    # general
    "Direction",
    "Pole",
    "Vector3",
    "angle",
    "angle_between",
    "cart",
    "correct_bedding",
    "flip",
    "inv_poles",
    "paleolatitude",
    "poles",
    "rotate_to",
    "rotate_to_pole",
    "to_dir",
    "unit_vector",
    "validate_direction",
    "validate_directions",
]
