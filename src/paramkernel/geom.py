## foundational vector operations for paramKernel
## Copyright (c) 2020 Richard DeVaul
## Copyright (c) 2025 paramKernel contributors

# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""foundational vector operations for **paramKernel**

====================
OVERVIEW
====================

Every geometric value in the kernel is ultimately built from
homogeneous four-vectors, ``[x, y, z, w]``.

points
======

Points live in the w=1 hyperplane.  ``point()`` makes one out of
scalars, an existing point, or any 3-sequence: ::

   p1 = point(1, 2, 3)          # [1, 2, 3, 1.0]
   p2 = point((1.0, 2.0, 3.0))  # same thing

vectors
=======

Direction vectors (normals, tangents, axes) live in the w=0
hyperplane, so a 4x4 transformation matrix moves points but only
rotates/scales vectors.  ``vector()`` makes one.

The arithmetic below keeps track of w the way you would expect:
point - point is a vector, point + vector is a point, and vector
arithmetic stays a vector.

constants
=========

``epsilon`` is the general-purpose comparison tolerance of the
foundation layer.  Kernel modules use the tighter tolerances in
:mod:`paramkernel.settings`.
"""

from math import sqrt

## constants
epsilon = 1e-9
pi2 = 6.283185307179586

## operations on scalars
## -----------------------

def isgoodnum(n):
    """ determine if an argument is actually a scalar number, and not boolean
    """
    return (not isinstance(n, bool)) and isinstance(n, (int, float))

def close(a, b, tol=epsilon):
    """ are two scalars the same within ``tol``
    """
    return abs(a - b) < tol

def clamp(x, lo, hi):
    """ clamp ``x`` to the closed interval ``[lo, hi]``"""
    return min(max(x, lo), hi)


## operations on vectors
## ------------------------

def vect(a=False, b=False, c=False, d=False):
    """Convenience function for making a homogeneous coordinates 4 vector
from practically anything
    """
    r = [0.0, 0.0, 0.0, 1.0]
    if isgoodnum(a):
        r[0] = a
        if isgoodnum(b):
            r[1] = b
            if isgoodnum(c):
                r[2] = c
                if isgoodnum(d):
                    r[3] = d
    elif isinstance(a, (tuple, list)):
        for i in range(min(4, len(a))):
            x = a[i]
            if isgoodnum(x):
                r[i] = x
    return r

def isvect(x):
    """
    check to see if argument is a proper vector for our purposes
    """
    return isinstance(x, list) and len(x) == 4 and isgoodnum(x[0]) and \
        isgoodnum(x[1]) and isgoodnum(x[2]) and isgoodnum(x[3])

def isvector(x):
    """ is it a direction vector (w == 0)?"""
    return isvect(x) and x[3] == 0

def point(x=False, y=False, z=False):
    """Point creation from a point, a 3-sequence, or scalars.  Always
    returns a fresh list in the w=1 hyperplane."""
    if isinstance(x, (list, tuple)):
        if len(x) >= 4 and isgoodnum(x[3]) and x[3] > 0 and not close(x[3], 1.0):
            w = float(x[3])
            return [x[0] / w, x[1] / w, x[2] / w, 1.0]
        r = vect(x)
        r[3] = 1.0
        return r
    r = [0.0, 0.0, 0.0, 1.0]
    if isgoodnum(x):
        r[0] = x
        if isgoodnum(y):
            r[1] = y
            if isgoodnum(z):
                r[2] = z
    return r

def ispoint(x):
    """ is it a point?"""
    return isvect(x) and x[3] > 0.0

def vector(x=False, y=False, z=False):
    """Direction vector creation from a vector, a 3-sequence, or
    scalars.  Always returns a fresh list in the w=0 hyperplane."""
    if isinstance(x, (list, tuple)):
        r = vect(x)
    else:
        r = vect(x, y, z)
    r[3] = 0.0
    return r

def xyz(a):
    """ plain ``(x, y, z)`` float tuple for a point or vector"""
    return (float(a[0]), float(a[1]), float(a[2]))


## R^3 -> R^3 functions: w follows point/vector algebra
## ------------------------------------------------

def _w(a):
    return a[3] if len(a) > 3 else 1.0

def add(a, b):
    """ 3 vector, `a + b`"""
    return [a[0]+b[0], a[1]+b[1], a[2]+b[2], min(1.0, _w(a) + _w(b))]

def sub(a, b):
    """ 3 vector, `a - b`"""
    return [a[0]-b[0], a[1]-b[1], a[2]-b[2], max(0.0, _w(a) - _w(b))]

def scale3(a, c):
    """ 3 vector, vector ''a'' times scalar ``c``, `a * c`"""
    return [a[0]*c, a[1]*c, a[2]*c, _w(a)]

def mul(a, b):
    """ component-wise 3 vector multiplication"""
    return [a[0]*b[0], a[1]*b[1], a[2]*b[2], _w(a)]

def neg(a):
    """ reversed direction vector"""
    return [-a[0], -a[1], -a[2], 0.0]

def cross(a, b):
    """Compute the cross product of a x b.  The result is a direction
    vector."""
    return [a[1]*b[2] - a[2]*b[1],
            a[2]*b[0] - a[0]*b[2],
            a[0]*b[1] - a[1]*b[0],
            0.0]

def lerp(a, b, t):
    """ linear interpolation ``a + (b - a) * t``, keeping the w of ``a``"""
    return [a[0] + (b[0]-a[0])*t,
            a[1] + (b[1]-a[1])*t,
            a[2] + (b[2]-a[2])*t,
            _w(a)]

def combine(origin, *terms):
    """ ``origin + sum(vec * s)`` for ``(vec, s)`` pairs; handy for
    evaluating points in a local frame"""
    x, y, z = origin[0], origin[1], origin[2]
    for vec, s in terms:
        x += vec[0]*s
        y += vec[1]*s
        z += vec[2]*s
    return [x, y, z, _w(origin)]


## R^3 -> R functions -- ignore w component
## ----------------------------------------
def dot(a, b):
    """ 3 vector ``a`` dot ``b`` """
    return a[0]*b[0] + a[1]*b[1] + a[2]*b[2]

def mag(a):
    """ compute the magnitude of 3 vector ``a``"""
    return sqrt(a[0]*a[0] + a[1]*a[1] + a[2]*a[2])

def mag2(a):
    """ squared magnitude of 3 vector ``a``"""
    return a[0]*a[0] + a[1]*a[1] + a[2]*a[2]

def dist(a, b):
    """ compute the euclidean distance between two 3 vector points ``a`` and ``b``"""
    dx = a[0]-b[0]
    dy = a[1]-b[1]
    dz = a[2]-b[2]
    return sqrt(dx*dx + dy*dy + dz*dz)

def vclose(a, b, tol=epsilon):
    """ are two vectors the same within ``tol``"""
    return dist(a, b) < tol


## normalization
## -------------

def unit(a, fallback=None):
    """Return a unit direction vector along ``a``.  If ``a`` is
    (nearly) zero length, return a copy of ``fallback``, or ``None`` if
    no fallback was given."""
    m = mag(a)
    if m <= epsilon:
        if fallback is None:
            return None
        return vector(fallback)
    return [a[0]/m, a[1]/m, a[2]/m, 0.0]

def orthogonal(a):
    """Return a unit vector perpendicular to ``a``, built by zeroing
    the smallest component of ``a``."""
    ax, ay, az = abs(a[0]), abs(a[1]), abs(a[2])
    if ax <= ay and ax <= az:
        v = [0.0, -a[2], a[1], 0.0]
    elif ay <= ax and ay <= az:
        v = [-a[2], 0.0, a[0], 0.0]
    else:
        v = [-a[1], a[0], 0.0, 0.0]
    return unit(v, [1.0, 0.0, 0.0])


## point sets
## ----------

def centroid(points):
    """ arithmetic mean of a list of points, or ``None`` if empty"""
    if not points:
        return None
    n = float(len(points))
    sx = sy = sz = 0.0
    for p in points:
        sx += p[0]
        sy += p[1]
        sz += p[2]
    return [sx/n, sy/n, sz/n, 1.0]

def pointbbox(points):
    """Axis-aligned bounding box ``[min, max]`` of a list of points,
    or ``None`` if the list is empty."""
    if not points:
        return None
    lo = [float('inf')] * 3
    hi = [float('-inf')] * 3
    for p in points:
        for i in range(3):
            if p[i] < lo[i]:
                lo[i] = p[i]
            if p[i] > hi[i]:
                hi[i] = p[i]
    return [[lo[0], lo[1], lo[2], 1.0], [hi[0], hi[1], hi[2], 1.0]]

def isinsidebbox(bbox, p, tol=0.0):
    """ does point ``p`` lie inside 3D bounding box ``bbox``?"""
    return p[0] >= bbox[0][0]-tol and p[0] <= bbox[1][0]+tol and\
        p[1] >= bbox[0][1]-tol and p[1] <= bbox[1][1]+tol and\
        p[2] >= bbox[0][2]-tol and p[2] <= bbox[1][2]+tol

def bboxoverlap(a, b, tol=0.0):
    """ do two 3D bounding boxes overlap?"""
    for i in range(3):
        if a[1][i] < b[0][i]-tol or b[1][i] < a[0][i]-tol:
            return False
    return True

# pretty printing string formatter for vectors and lists of vectors
def vstr(a):
    """ utility function for recursively formatting vectors"""
    if isvect(a):
        if a[3] == 0:
            return "<{}, {}, {}>".format(a[0], a[1], a[2])
        return "[{}, {}, {}]".format(a[0], a[1], a[2])
    if isinstance(a, (list, tuple)) and a and all(isvect(x) for x in a):
        return "[" + ", ".join(vstr(x) for x in a) + "]"
    return str(a)


__all__ = [
    'epsilon', 'pi2', 'isgoodnum', 'close', 'clamp', 'vect', 'isvect',
    'isvector', 'point', 'ispoint', 'vector', 'xyz', 'add', 'sub',
    'scale3', 'mul', 'neg', 'cross', 'lerp', 'combine', 'dot', 'mag',
    'mag2', 'dist', 'vclose', 'unit', 'orthogonal', 'centroid',
    'pointbbox', 'isinsidebbox', 'bboxoverlap', 'vstr',
]
