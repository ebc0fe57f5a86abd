"""
Daylog - Personal Daily-Log Time Series

Modules:
- daylog: Loaders, location tagging, daily aggregation, merge and feed
- analysis: ARIMA/SARIMA, dynamic regression, Granger causality and
  interrupted time series on the unified daily table
"""
