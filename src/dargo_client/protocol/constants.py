# Message type constants (short tags are the wire contract; canonical list lives here)

# client -> server
T_DIMENSIONS = "d"
T_TOUCH_UPDATE = "tu"
T_TOUCH_END = "te"

ALL_TAGS = (T_DIMENSIONS, T_TOUCH_UPDATE, T_TOUCH_END)
