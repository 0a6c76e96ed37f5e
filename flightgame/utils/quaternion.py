# Vector and quaternion helpers. Quaternions are numpy arrays in (w, x, y, z) order.
import math
import numpy as np

X_AXIS = np.array([1.0, 0.0, 0.0])
Y_AXIS = np.array([0.0, 1.0, 0.0])
Z_AXIS = np.array([0.0, 0.0, 1.0])


def vec3(x=0.0, y=0.0, z=0.0):
    return np.array([x, y, z], dtype=float)


def normalize(v):
    """Unit vector along v, or v unchanged when it has zero length."""
    n = np.linalg.norm(v)
    if n == 0.0:
        return np.array(v, dtype=float)
    return v / n


def angle(a, b):
    """Angle in radians between two vectors; 0 when either is zero-length."""
    mag = math.sqrt(float(np.dot(a, a)) * float(np.dot(b, b)))
    if mag == 0.0:
        return 0.0
    cosine = float(np.dot(a, b)) / mag
    return math.acos(min(max(cosine, -1.0), 1.0))


def wrap_angle(a):
    """Fold an angle into (-pi, pi]."""
    if a > math.pi:
        a -= 2.0 * math.pi
    elif a <= -math.pi:
        a += 2.0 * math.pi
    return a


def rotate_z(v, theta):
    """Rotate v about the vertical axis by theta (counter-clockwise seen from above)."""
    c, s = math.cos(theta), math.sin(theta)
    return np.array([v[0] * c - v[1] * s, v[0] * s + v[1] * c, v[2]])


def quat_identity():
    return np.array([1.0, 0.0, 0.0, 0.0])


def quat_from_axis_angle(axis, theta):
    s = math.sin(theta / 2.0)
    return np.array([math.cos(theta / 2.0), axis[0] * s, axis[1] * s, axis[2] * s])


def quat_multiply(a, b):
    """Hamilton product a*b (apply b first, then a)."""
    aw, ax, ay, az = a
    bw, bx, by, bz = b
    return np.array([
        aw * bw - ax * bx - ay * by - az * bz,
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
    ])


def quat_normalize(q):
    n = np.linalg.norm(q)
    if n == 0.0:
        return quat_identity()
    return q / n


def quat_rotate(q, v):
    """Rotate vector v by unit quaternion q."""
    w = q[0]
    u = q[1:]
    uv = np.cross(u, v)
    uuv = np.cross(u, uv)
    return v + 2.0 * (w * uv + uuv)


def quat_rotation_to(a, b):
    """
    Shortest rotation taking unit vector a onto unit vector b.
    Antiparallel inputs rotate by pi about any axis perpendicular to a.
    """
    dot = float(np.dot(a, b))
    if dot < -0.999999:
        axis = np.cross(X_AXIS, a)
        if np.linalg.norm(axis) < 1e-6:
            axis = np.cross(Y_AXIS, a)
        return quat_from_axis_angle(normalize(axis), math.pi)
    if dot > 0.999999:
        return quat_identity()
    axis = np.cross(a, b)
    return quat_normalize(np.array([1.0 + dot, axis[0], axis[1], axis[2]]))
