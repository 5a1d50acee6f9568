# Repositories package.
#
# Query functions for a single aggregate, taking an AsyncSession as their
# first argument.  They only read; persistence is the service layer's job.
