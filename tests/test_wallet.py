import asyncio

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3

from agent_actions.wallet.base import Address
from agent_actions.wallet.keypair import KeypairWallet
from agent_actions.wallet.keystore import create_keystore, decrypt_key, load_address

# Well-known throwaway key from the Hardhat default accounts
PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
KDF_ITERATIONS = 2**12


def test_address_round_trips_checksum_text():
    addr = Address.from_hex("0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266")

    assert str(addr) == "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
    assert Address.parse(str(addr)) == addr
    assert len(addr.raw) == 20


@pytest.mark.parametrize("value", ["0x1234", "0xzz9fd6e51aad88f6f4ce6ab8827279cfffb92266", ""])
def test_address_rejects_malformed_input(value):
    with pytest.raises(ValueError):
        Address.from_hex(value)


def test_keypair_wallet_address_and_repr():
    wallet = KeypairWallet(PRIVATE_KEY)

    assert str(wallet.address()) == "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
    assert PRIVATE_KEY[2:] not in repr(wallet)


@pytest.mark.asyncio
async def test_sign_produces_recoverable_signature():
    wallet = KeypairWallet(PRIVATE_KEY)

    signature = await wallet.sign(b"hello agent")

    signer = Account.recover_message(encode_defunct(primitive=b"hello agent"), signature=signature.data)
    assert signer == str(wallet.address())
    assert signature.sequence == 1
    assert signature.hex().startswith("0x")


@pytest.mark.asyncio
async def test_concurrent_signs_get_unique_gapless_sequences():
    wallet = KeypairWallet.generate()

    signatures = await asyncio.gather(*(wallet.sign(f"payload-{i}".encode()) for i in range(100)))

    assert sorted(s.sequence for s in signatures) == list(range(1, 101))
    assert wallet.signatures_issued == 100


@pytest.mark.asyncio
async def test_sequences_stay_unique_across_threads():
    wallet = KeypairWallet.generate()

    def sign_in_thread(i):
        return asyncio.run(wallet.sign(str(i).encode()))

    loop = asyncio.get_running_loop()
    signatures = await asyncio.gather(
        *(loop.run_in_executor(None, sign_in_thread, i) for i in range(40))
    )

    assert sorted(s.sequence for s in signatures) == list(range(1, 41))


@pytest.mark.asyncio
async def test_sign_transaction_is_recoverable():
    wallet = KeypairWallet(PRIVATE_KEY)
    tx = {
        "to": Web3.to_checksum_address("0x70997970c51812dc3a010c7d01b50e0d17dc79c8"),
        "value": 10**15,
        "nonce": 0,
        "chainId": 11155111,
        "gas": 21000,
        "maxFeePerGas": 2 * 10**9,
        "maxPriorityFeePerGas": 10**9,
    }

    signed = await wallet.sign_transaction(tx)
    batch = await wallet.sign_all_transactions([dict(tx, nonce=1), dict(tx, nonce=2)])

    assert Account.recover_transaction(signed.raw) == str(wallet.address())
    assert signed.hash_hex.startswith("0x")
    assert [s.sequence for s in [signed, *batch]] == [1, 2, 3]


def test_keystore_lifecycle(tmp_path):
    path = tmp_path / "wallet" / "keystore.json"

    address = create_keystore(path, "correct horse", iterations=KDF_ITERATIONS)

    assert load_address(path) == address
    key = decrypt_key(path, "correct horse")
    assert Account.from_key(key).address == str(address)
    assert str(KeypairWallet.from_keystore(path, "correct horse").address()) == str(address)


def test_keystore_errors(tmp_path):
    path = tmp_path / "keystore.json"

    assert load_address(path) is None
    with pytest.raises(FileNotFoundError):
        decrypt_key(path, "pw")

    create_keystore(path, "pw", iterations=KDF_ITERATIONS)
    with pytest.raises(FileExistsError):
        create_keystore(path, "pw", iterations=KDF_ITERATIONS)
    with pytest.raises(ValueError):
        decrypt_key(path, "wrong")
