## generalized matrix transformation operations for 3D homogeneous
## coordinates in paramKernel

## Copyright (c) 2020 Richard W. DeVaul
## Copyright (c) 2025 paramKernel contributors
## All rights reserved

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

from math import cos, sin, sqrt

import mpmath

from paramkernel import geom

## a matrix is represented as a list of four four vectors. In a
## matrix, vectors represent rows unless the transpose property is
## true.  Because vectors are represented as lists (not as instances
## of a class with meta-info) we assume that operations like Mx imply
## a column vector and that xM imply a row vector.

## Inverses of the builders below are available analytically through
## their ``inverse`` flag.  Arbitrary matrices are inverted numerically
## with Gauss-Jordan elimination carried out in extended precision.

## working precision (decimal digits) for numeric inversion
INVERSE_DPS = 30

## pivots smaller than this are treated as singular
SINGULAR_PIVOT = 1e-12


def _dot4(a, b):
    return a[0]*b[0] + a[1]*b[1] + a[2]*b[2] + a[3]*b[3]


class Matrix:
    """4x4 transformation matrix class for transforming homogemenous 3D coordinates"""

    def __init__(self, a=False, trans=False):
        self.m = [[1.0, 0.0, 0.0, 0.0],
                  [0.0, 1.0, 0.0, 0.0],
                  [0.0, 0.0, 1.0, 0.0],
                  [0.0, 0.0, 0.0, 1.0]]
        self.trans = False

        if isinstance(a, Matrix):
            for i in range(4):
                self.setrow(i, list(a.getrow(i)))

        elif isinstance(a, (tuple, list)):
            if len(a) == 4:
                if not all(isinstance(r, (tuple, list)) and len(r) == 4 for r in a):
                    raise ValueError('bad rows in matrix initialization: {}'.format(a))
                for i in range(4):
                    for j in range(4):
                        x = a[i][j]
                        if geom.isgoodnum(x):
                            self.m[i][j] = float(x)
                        else:
                            raise ValueError('bad element in matrix initialization: {}'.format(x))
            elif len(a) == 16:
                for i in range(4):
                    for j in range(4):
                        x = a[i*4+j]
                        if geom.isgoodnum(x):
                            self.m[i][j] = float(x)
                        else:
                            raise ValueError('bad element in matrix initialization: {}'.format(x))
            else:
                raise ValueError('bad thing used in attempt to initialize matrix: {}'.format(a))
        elif a is not False and a is not None:
            raise ValueError('bad thing used in attempt to initialize matrix: {}'.format(a))
        self.trans = trans

    def __repr__(self):
        return "Matrix({},{},{},{},{})".format(self.m[0], self.m[1],
                                               self.m[2], self.m[3], self.trans)

    def __eq__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.rows() == other.rows()

    __hash__ = None

    #return value indexed by i,j
    def get(self, i, j):
        if i < 0 or i > 3 or j < 0 or j > 3:
            raise ValueError('bad index passed to get: {},{}'.format(i, j))
        if self.trans:
            return self.m[j][i]
        else:
            return self.m[i][j]

    #set value indexed by i,j
    def set(self, i, j, x):
        if i < 0 or i > 3 or j < 0 or j > 3:
            raise ValueError('bad index passed to set: {},{}'.format(i, j))
        if geom.isgoodnum(x):
            if self.trans:
                self.m[j][i] = x
            else:
                self.m[i][j] = x
        else:
            raise ValueError('bad value passed to set: {}'.format(x))

    def getrow(self, i):
        if i < 0 or i > 3:
            raise ValueError('bad row passed to getrow: {}'.format(i))
        if self.trans:
            return [self.m[0][i],
                    self.m[1][i],
                    self.m[2][i],
                    self.m[3][i]]
        else:
            return self.m[i]

    def getcol(self, j):
        if j < 0 or j > 3:
            raise ValueError('bad column passed to getcol: {}'.format(j))
        if not self.trans:
            return [self.m[0][j],
                    self.m[1][j],
                    self.m[2][j],
                    self.m[3][j]]
        else:
            return self.m[j]

    def setrow(self, i, x):
        if not geom.isvect(x):
            raise ValueError('bad non-vector passed to setrow: {}'.format(x))
        if i < 0 or i > 3:
            raise ValueError('bad row index passed to setrow: {}'.format(i))
        if self.trans:
            self.m[0][i] = x[0]
            self.m[1][i] = x[1]
            self.m[2][i] = x[2]
            self.m[3][i] = x[3]
        else:
            self.m[i] = x

    def rows(self):
        """ fresh row-major list-of-lists copy, with the transpose flag applied"""
        return [list(self.getrow(i)) for i in range(4)]

    # matrix multiply.  If x is a matrix, compute MX.  If X is a
    # vector, compute Mx. If x is a scalar, compute xM. If x isn't any
    # of these, raise ValueError.  Respects transpose flag.

    def mul(self, x):
        if isinstance(x, Matrix):
            result = Matrix()
            for i in range(4):
                row = self.getrow(i)
                for j in range(4):
                    result.set(i, j, _dot4(row, x.getcol(j)))
            return result
        elif geom.isvect(x):
            return [_dot4(self.getrow(i), x) for i in range(4)]
        elif geom.isgoodnum(x):
            result = Matrix()
            for i in range(4):
                result.setrow(i, [v*x for v in self.getrow(i)])
            return result

        raise ValueError('bad thing passed to mul(): {}'.format(x))

    def transpose(self):
        """ return a new matrix that is the transpose of this one"""
        return Matrix(self.rows(), trans=True)

    def linear_part(self):
        """ copy of this matrix with the translation column zeroed, used
        for mapping direction vectors"""
        r = self.rows()
        for i in range(3):
            r[i][3] = 0.0
        r[3] = [0.0, 0.0, 0.0, 1.0]
        return Matrix(r)

    def determinant(self):
        """ determinant by cofactor expansion along the first row"""
        m = self.rows()

        def det3(a):
            return (a[0][0]*(a[1][1]*a[2][2] - a[1][2]*a[2][1])
                    - a[0][1]*(a[1][0]*a[2][2] - a[1][2]*a[2][0])
                    + a[0][2]*(a[1][0]*a[2][1] - a[1][1]*a[2][0]))

        total = 0.0
        for j in range(4):
            minor = [[m[i][k] for k in range(4) if k != j] for i in range(1, 4)]
            sign = -1.0 if j % 2 else 1.0
            total += sign * m[0][j] * det3(minor)
        return total

    def inverse(self):
        """Numeric inverse by Gauss-Jordan elimination with partial
        pivoting, carried out in extended precision with ``mpmath``.
        Returns ``None`` if the matrix is singular."""
        with mpmath.workdps(INVERSE_DPS):
            a = [[mpmath.mpf(v) for v in row] for row in self.rows()]
            inv = [[mpmath.mpf(1 if i == j else 0) for j in range(4)]
                   for i in range(4)]
            for col in range(4):
                pivot = max(range(col, 4), key=lambda r: abs(a[r][col]))
                if abs(a[pivot][col]) < SINGULAR_PIVOT:
                    return None
                if pivot != col:
                    a[col], a[pivot] = a[pivot], a[col]
                    inv[col], inv[pivot] = inv[pivot], inv[col]
                p = a[col][col]
                a[col] = [v / p for v in a[col]]
                inv[col] = [v / p for v in inv[col]]
                for r in range(4):
                    if r == col:
                        continue
                    f = a[r][col]
                    if f == 0:
                        continue
                    a[r] = [a[r][k] - f*a[col][k] for k in range(4)]
                    inv[r] = [inv[r][k] - f*inv[col][k] for k in range(4)]
            return Matrix([[float(v) for v in row] for row in inv])

    def isidentity(self, tol=geom.epsilon):
        """ is this (within ``tol``) the identity matrix?"""
        for i in range(4):
            row = self.getrow(i)
            for j in range(4):
                if abs(row[j] - (1.0 if i == j else 0.0)) > tol:
                    return False
        return True


def identity():
    """ a fresh 4x4 identity matrix"""
    return Matrix()


# return the generalized 4x4 arbitrary axis rotation matrix.  Angle
# is in radians, positive angles are counterclockwise looking down
# the axis toward the origin.
def Rotation(axis, angle, inverse=False):
    m = geom.mag(axis)
    u = axis
    if m < geom.epsilon:
        raise ValueError('zero-length rotation axis not allowed')
    if not geom.close(m, 1.0):
        u = geom.scale3(axis, 1.0/m)

    if inverse:
        angle *= -1.0

    ux = u[0]
    uy = u[1]
    uz = u[2]

    cang = cos(angle)
    cmin = 1.0-cang
    sang = sin(angle)

    # see http://www.opengl-tutorial.org/assets/faq_quaternions/index.html#Q38
    R = [[cang + ux*ux*cmin, ux*uy*cmin-uz*sang, ux*uz*cmin+uy*sang, 0],
         [uy*ux*cmin+uz*sang, cang + uy*uy*cmin, uy*uz*cmin - ux*sang, 0],
         [uz*ux*cmin-uy*sang, uz*uy*cmin+ux*sang, cang+uz*uz*cmin, 0],
         [0, 0, 0, 1]]

    return Matrix(R)

def Translation(delta, inverse=False):
    if inverse:
        delta = geom.scale3(delta, -1.0)
    dx = delta[0]
    dy = delta[1]
    dz = delta[2]
    T = [[1, 0, 0, dx],
         [0, 1, 0, dy],
         [0, 0, 1, dz],
         [0, 0, 0, 1]]
    return Matrix(T)

def Scale(x, y=False, z=False, inverse=False):
    sx = sy = sz = 1.0
    if geom.isgoodnum(x):
        sx = x
        if geom.isgoodnum(y) and geom.isgoodnum(z):
            sy = y
            sz = z
        else:
            sy = sz = x
    elif isinstance(x, (list, tuple)) and len(x) >= 3:
        sx = x[0]
        sy = x[1]
        sz = x[2]
    else:
        raise ValueError('bad scaling values passed to Scale')

    if inverse:
        sx = 1.0/sx
        sy = 1.0/sy
        sz = 1.0/sz

    S = [[sx, 0, 0, 0],
         [0, sy, 0, 0],
         [0, 0, sz, 0],
         [0, 0, 0, 1.0]]
    return Matrix(S)

# Householder reflection across the plane through ``origin`` with
# unit normal ``normal``
def Reflection(normal, origin=None):
    n = geom.unit(normal)
    if n is None:
        raise ValueError('zero-length reflection normal not allowed')
    nx, ny, nz = n[0], n[1], n[2]
    H = Matrix([[1-2*nx*nx, -2*nx*ny, -2*nx*nz, 0],
                [-2*ny*nx, 1-2*ny*ny, -2*ny*nz, 0],
                [-2*nz*nx, -2*nz*ny, 1-2*nz*nz, 0],
                [0, 0, 0, 1]])
    if origin is None:
        return H
    return Translation(origin).mul(H).mul(Translation(origin, inverse=True))

# local-to-world matrix whose columns are the three axes and the origin
def Basis(origin, x, y, z):
    B = [[x[0], y[0], z[0], origin[0]],
         [x[1], y[1], z[1], origin[1]],
         [x[2], y[2], z[2], origin[2]],
         [0, 0, 0, 1]]
    return Matrix(B)


## quaternions are plain (w, x, y, z) tuples
## -----------------------------------------

def quat_from_unit_vectors(a, b):
    """Shortest-arc unit quaternion rotating unit vector ``a`` onto unit
    vector ``b``.  Antiparallel inputs rotate half a turn about an
    arbitrary perpendicular axis."""
    d = geom.dot(a, b)
    if d < -1.0 + 1e-9:
        axis = geom.orthogonal(a)
        return (0.0, axis[0], axis[1], axis[2])
    c = geom.cross(a, b)
    w = 1.0 + d
    n = sqrt(w*w + c[0]*c[0] + c[1]*c[1] + c[2]*c[2])
    return (w/n, c[0]/n, c[1]/n, c[2]/n)

def quat_matrix(q):
    """ rotation matrix for unit quaternion ``q = (w, x, y, z)``"""
    w, x, y, z = q
    return Matrix([[1-2*(y*y+z*z), 2*(x*y-w*z), 2*(x*z+w*y), 0],
                   [2*(x*y+w*z), 1-2*(x*x+z*z), 2*(y*z-w*x), 0],
                   [2*(x*z-w*y), 2*(y*z+w*x), 1-2*(x*x+y*y), 0],
                   [0, 0, 0, 1]])


## dense linear systems
## --------------------

def solve_linear_system(a, b, eps=1e-9):
    """Solve ``a x = b`` for a small dense square system by Gaussian
    elimination with partial pivoting.

    Parameters
    ----------
    a : list of list of float
        n x n coefficient matrix (not modified)
    b : list of float
        right-hand side of length n (not modified)
    eps : float
        pivots with magnitude below this are treated as singular

    Returns
    -------
    list of float or None
        the solution vector, or ``None`` when the system is singular
    """
    n = len(b)
    if n == 0 or len(a) != n:
        return None
    m = [list(a[i]) + [b[i]] for i in range(n)]
    for col in range(n):
        pivot = max(range(col, n), key=lambda r: abs(m[r][col]))
        if abs(m[pivot][col]) < eps:
            return None
        if pivot != col:
            m[col], m[pivot] = m[pivot], m[col]
        for r in range(col+1, n):
            f = m[r][col] / m[col][col]
            if f == 0.0:
                continue
            for k in range(col, n+1):
                m[r][k] -= f*m[col][k]
    x = [0.0]*n
    for r in range(n-1, -1, -1):
        s = m[r][n]
        for k in range(r+1, n):
            s -= m[r][k]*x[k]
        x[r] = s / m[r][r]
    return x


__all__ = [
    'Matrix', 'identity', 'Rotation', 'Translation', 'Scale',
    'Reflection', 'Basis', 'quat_from_unit_vectors', 'quat_matrix',
    'solve_linear_system',
]
