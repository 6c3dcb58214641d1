from loadout.policy import DEFAULT_POLICY, Policy, is_eligible, partition_eligible


def test_default_policy_blocks_only_ludicrous_keys() -> None:
    assert is_eligible("pagefile", policy=DEFAULT_POLICY)
    assert is_eligible("bloatware", policy=DEFAULT_POLICY)
    assert not is_eligible("dep_off", policy=DEFAULT_POLICY)


def test_acknowledgement_is_one_way_and_returns_copy() -> None:
    policy = Policy()
    acknowledged = policy.acknowledge_ludicrous()
    assert not policy.ludicrous_acknowledged
    assert acknowledged.ludicrous_acknowledged
    assert acknowledged.acknowledge_ludicrous().ludicrous_acknowledged
    assert is_eligible("dep_off", policy=acknowledged)


def test_partition_preserves_input_order() -> None:
    eligible, blocked = partition_eligible(
        ["nagle", "dep_off", "dns", "core_isolation_off"], policy=DEFAULT_POLICY
    )
    assert eligible == ("nagle", "dns")
    assert blocked == ("dep_off", "core_isolation_off")
