"""Kernel-wide tolerances and sampling caps.

These are plain module constants in the same spirit as ``epsilon`` in
the foundation layer: every function that uses one also accepts a
keyword override, so callers rarely need to touch the module values.
Redefine them at your peril.
"""

## degenerate vector / plane orthonormality tolerance
EPSILON = 1e-9

## vertices closer than this are merged when building a SubD
MERGE_TOLERANCE = 1e-6

## maximum number of points gathered from a single (possibly deeply
## nested) value by the point collector
SAMPLE_LIMIT = 2048

## closest-point solver
CLOSEST_POINT_RESOLUTION = 24
CLOSEST_POINT_ITERATIONS = 8
CLOSEST_POINT_STEP = 1e-6

## finite differences, expressed as a fraction of the domain span
DERIVATIVE_STEP = 1e-4

PLANARITY_TOLERANCE = 1e-4

## trilinear box inversion
TWISTED_BOX_ITERATIONS = 25
TWISTED_BOX_TOLERANCE = 1e-7

## curve sampling
CURVE_SEGMENTS = 32
FLOW_SAMPLES = 256

__all__ = [
    'EPSILON',
    'MERGE_TOLERANCE',
    'SAMPLE_LIMIT',
    'CLOSEST_POINT_RESOLUTION',
    'CLOSEST_POINT_ITERATIONS',
    'CLOSEST_POINT_STEP',
    'DERIVATIVE_STEP',
    'PLANARITY_TOLERANCE',
    'TWISTED_BOX_ITERATIONS',
    'TWISTED_BOX_TOLERANCE',
    'CURVE_SEGMENTS',
    'FLOW_SAMPLES',
]
