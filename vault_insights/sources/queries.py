"""GraphQL documents sent to the subgraphs.

Parent collections are fetched whole (``first: 1000``); the nested event
lists share the ``$skip``/``$first`` window driven by the pagination loop.
"""

TOKEN_FIELDS = """
  address: id
  decimals
  name
"""

INVESTOR_TIMELINE = """
query InvestorTimeline($investor_address: String!, $skip: Int!, $first: Int!) {
  clmPositions(first: 1000, where: { investor: $investor_address }) {
    clm {
      address: id
      managerToken { %(token)s }
      rewardPoolTokens { %(token)s }
      rewardPoolTokensOrder
      underlyingToken0 { %(token)s }
      underlyingToken1 { %(token)s }
    }
    interactions(
      skip: $skip
      first: $first
      orderBy: timestamp
      orderDirection: asc
    ) {
      id
      timestamp
      type
      createdWith { hash }
      managerBalance
      managerBalanceDelta
      rewardPoolBalances
      rewardPoolBalancesDelta
      underlyingBalance0
      underlyingBalance0Delta
      underlyingBalance1
      underlyingBalance1Delta
      token0ToNativePrice
      token1ToNativePrice
      nativeToUSDPrice
    }
  }
  classicPositions(first: 1000, where: { investor: $investor_address }) {
    classic {
      address: id
      vaultSharesToken { %(token)s }
      rewardPoolTokens { %(token)s }
      rewardPoolTokensOrder
      underlyingBreakdownTokens { %(token)s }
      underlyingBreakdownTokensOrder
    }
    interactions(
      skip: $skip
      first: $first
      orderBy: timestamp
      orderDirection: asc
    ) {
      id
      timestamp
      type
      createdWith { hash }
      vaultBalance
      vaultBalanceDelta
      rewardPoolBalances
      rewardPoolBalancesDelta
      vaultUnderlyingBreakdownBalances
      vaultUnderlyingBreakdownBalancesDelta
      underlyingBreakdownToNativePrices
      nativeToUSDPrice
    }
  }
}
""" % {"token": TOKEN_FIELDS}

VAULTS = """
query Vaults($since: BigInt!, $skip: Int!, $first: Int!) {
  clms(first: 1000) {
    vaultAddress: id
    priceRangeMin1
    priceOfToken0InToken1
    priceRangeMax1
    underlyingToken0 { decimals }
    underlyingToken1 { decimals }
    collectedFees: collectedFees(
      skip: $skip
      first: $first
      orderBy: timestamp
      orderDirection: asc
      where: { timestamp_gte: $since }
    ) {
      id
      timestamp
      collectedAmount0
      collectedAmount1
      underlyingMainAmount0
      underlyingMainAmount1
      underlyingAltAmount0
      underlyingAltAmount1
      token0ToNativePrice
      token1ToNativePrice
    }
  }
}
"""

_HARVEST_EVENT_FIELDS = """
      id
      timestamp
      compoundedAmount0
      compoundedAmount1
      token0ToNativePrice
      token1ToNativePrice
      nativeToUSDPrice
      totalSupply
"""

_HARVEST_FIELDS = """
    vaultAddress: id
    underlyingToken0 { decimals }
    underlyingToken1 { decimals }
    sharesToken { decimals }
    harvests(
      first: 1000
      orderBy: timestamp
      orderDirection: asc
      where: { timestamp_gte: $since }
    ) {%s    }
""" % _HARVEST_EVENT_FIELDS

VAULTS_HARVESTS = """
query VaultsHarvests($since: BigInt!) {
  clms(first: 1000) {
%s
  }
}
""" % _HARVEST_FIELDS

VAULTS_HARVESTS_FILTERED = """
query VaultsHarvestsFiltered($since: BigInt!, $vaults: [ID!]!) {
  clms(first: 1000, where: { id_in: $vaults }) {
%s
  }
}
""" % _HARVEST_FIELDS

# ---------------------------------------------------------------------------
# Single vault
# ---------------------------------------------------------------------------

VAULT_PRICE = """
query VaultPrice($vault_address: ID!) {
  clm(id: $vault_address) {
    vaultAddress: id
    priceRangeMin1
    priceOfToken0InToken1
    priceRangeMax1
    underlyingToken1 { decimals }
  }
}
"""

VAULT_HARVESTS = """
query VaultHarvests($vault_address: ID!) {
  clm(id: $vault_address) {
    vaultAddress: id
    underlyingToken0 { decimals }
    underlyingToken1 { decimals }
    sharesToken { decimals }
    harvests(first: 1000, orderBy: timestamp, orderDirection: asc) {%s    }
  }
}
""" % _HARVEST_EVENT_FIELDS

VAULT_HISTORIC_PRICES = """
query VaultHistoricPrices($vault_address: ID!, $period: BigInt!, $since: BigInt!) {
  clm(id: $vault_address) {
    vaultAddress: id
    underlyingToken1 { decimals }
    snapshots(
      first: 1000
      orderBy: roundedTimestamp
      orderDirection: asc
      where: { period: $period, roundedTimestamp_gt: $since }
    ) {
      roundedTimestamp
      priceRangeMin1
      priceOfToken0InToken1
      priceRangeMax1
    }
  }
}
"""

VAULT_HISTORIC_PRICES_RANGE = """
query VaultHistoricPricesRange($vault_address: ID!, $period: BigInt!) {
  clm(id: $vault_address) {
    vaultAddress: id
    minSnapshot: snapshots(
      first: 1
      orderBy: roundedTimestamp
      orderDirection: asc
      where: { period: $period }
    ) {
      roundedTimestamp
    }
    maxSnapshot: snapshots(
      first: 1
      orderBy: roundedTimestamp
      orderDirection: desc
      where: { period: $period }
    ) {
      roundedTimestamp
    }
  }
}
"""
