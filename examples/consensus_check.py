"""Consensus Chain -- probability of an accepted outcome and expected steps.

Builds the consensus chain for two organizations that each confirm with
probability 0.5, accepting only the outcome where both confirm, and checks
P=? [F "end"] and the expected number of steps until the chain is absorbed.
"""

from consensus_chain import ConsensusModelGenerator, explore

# =============================================================
# Model 1: two organizations, both must confirm
# =============================================================
print("=== Two organizations, CNF (o0 & o1) ===")

generator = ConsensusModelGenerator.create(2, [0.5, 0.5], [[1, 1]])
model = explore(generator)
print(f"States: {model.num_states}")

result = model.probability_of("end")
print(f'P=?[F "end"] = {result.probability:.6f}')

steps = model.expected_reward_to_absorption("r")
print(f'R{{"r"}}=?[F absorbing] = {steps.expected:.4f}')

# =============================================================
# Model 2: three organizations, (o0 & o1) || (o1 & o2)
# =============================================================
print("\n=== Three organizations, exact outcomes 110 and 011 ===")

generator = ConsensusModelGenerator.create(3, [0.9, 0.8, 0.6], ["110", "011"])
model = explore(generator)

result = model.probability_of("end")
print(f'P=?[F "end"] = {result.probability:.6f}')
# 0.9 * 0.8 * 0.4 + 0.1 * 0.8 * 0.6 = 0.288 + 0.048
print("Expected: 0.336000")

print("\nAccepted leaves:")
for state_id in sorted(model.dtmc.states_with_label("end")):
    state = model.states[state_id]
    print(f"  {state!r}")
