"""
Atomic counters stored under props.counters of a node.

The increment is one UPDATE statement, so concurrent increments on the same
node compose without a read-modify-write race.
"""
from typing import Optional

from models.node_props import COUNTERS_KEY, validate_counter_name, validate_delta
from services_node_queries import NodeRow

# A missing or non-object "counters" value is replaced by {} first; a missing
# counter reads as 0.
INCREMENT_COUNTER_SQL = f"""
UPDATE node
SET props = jsonb_set(
        jsonb_set(
            props,
            '{{{COUNTERS_KEY}}}',
            CASE WHEN jsonb_typeof(props->'{COUNTERS_KEY}') = 'object'
                 THEN props->'{COUNTERS_KEY}'
                 ELSE '{{}}'::jsonb
            END,
            true
        ),
        ARRAY['{COUNTERS_KEY}', %s],
        to_jsonb(COALESCE((props #>> ARRAY['{COUNTERS_KEY}', %s])::bigint, 0) + %s),
        true
    )
WHERE tree_id = %s AND id = %s
RETURNING *
"""


def increment_counter(cur, tree_id: str, node_id: str, counter: str, delta: int = 1) -> Optional[NodeRow]:
    """
    Add delta to props.counters[counter] and return the updated row (None when not found).

    Raises:
        ValueError: empty counter name or non-integer delta.
    """
    validate_counter_name(counter)
    validate_delta(delta)
    cur.execute(INCREMENT_COUNTER_SQL, (counter, counter, delta, tree_id, node_id))
    return cur.fetchone()
