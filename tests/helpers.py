# Short chains for tests; two chains are enough for R-hat
FAST_SAMPLING = dict(draws=1000, tune=1000, chains=2, cores=1, progressbar=False)
